"""User management utilities.

This module provides user management functionality including registration,
admin-managed CRUD, password hashing and the per-day AI call counter.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import bcrypt
import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aiquiz.config import (
    DEFAULT_DAILY_AI_LIMIT,
    MIN_USERNAME_LENGTH,
    QUOTA_TIMEZONE,
    UNLIMITED_AI_SENTINEL,
)
from aiquiz.core.exceptions import (
    ConfigurationError,
    ConflictError,
    NoUpdatesProvidedError,
    NotFoundError,
    ValidationError,
)
from aiquiz.models.daily_call import DailyCallCountModel
from aiquiz.models.user import UserModel
from aiquiz.schemas.user import DailyCallsResponse, UserInfo
from aiquiz.utils.converters import user_to_info
from aiquiz.utils.validators import (
    require_daily_limit,
    require_password,
    require_pin,
    require_username,
)

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12

ROLE_SELF_REGISTERED = "self-registered"
ROLE_ADMIN_CREATED = "admin-created"

USER_UPDATE_FIELDS = (
    "username",
    "password",
    "pin",
    "email",
    "unlimited_ai",
    "daily_ai_limit",
)
# Fields where an explicit null is a real update rather than "absent"
NULLABLE_UPDATE_FIELDS = ("email",)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password.

    Returns:
        Hashed password (bcrypt hash string).
    """
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash.

    Args:
        plain_password: Plain text password to verify.
        hashed_password: Bcrypt hash string to verify against.

    Returns:
        True if password matches, False otherwise.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72],
            hashed_password.encode("utf-8"),
        )
    except ValueError as e:
        logger.error("Password verification error: %s", e)
        return False


def _conflict_message(error: IntegrityError) -> str:
    detail = str(error.orig).lower()
    if "username" in detail:
        return "Username already exists."
    if "pin" in detail:
        return "PIN already exists."
    return "Username or PIN already exists."


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            clock: Returns the current timezone-aware time; used to decide
                which calendar day a call is counted on.
        """
        self.db = db
        self.clock = clock or (lambda: datetime.now(pytz.utc))

    def today(self) -> date:
        """Return today's date in the configured quota timezone."""
        return self.clock().astimezone(pytz.timezone(QUOTA_TIMEZONE)).date()

    # --- CRUD ---

    def register_user(
        self,
        username: Optional[str],
        password: Optional[str],
        pin: Optional[str],
        email: Optional[str] = None,
    ) -> UserModel:
        """Create a self-registered user with the default daily limit.

        Raises:
            ValidationError: If a field is missing or malformed.
            ConflictError: If the username or PIN is taken.
        """
        if not username or not password or not pin:
            raise ValidationError("Username, password, and PIN are required")

        model = UserModel(
            username=require_username(username, MIN_USERNAME_LENGTH).lower(),
            password_hash=hash_password(require_password(password)),
            pin=require_pin(pin),
            email=(email or "").strip() or None,
            role=ROLE_SELF_REGISTERED,
            unlimited_ai=False,
            daily_ai_limit=DEFAULT_DAILY_AI_LIMIT,
        )
        self._insert(model)
        logger.info("Registered user: %s", model.username)
        return model

    def create_user(
        self,
        username: Optional[str],
        password: Optional[str],
        pin: Optional[str],
        email: Optional[str] = None,
        unlimited_ai: Optional[bool] = False,
        daily_ai_limit: Optional[int] = None,
        created_by: str = "admin",
    ) -> UserInfo:
        """Create a user on behalf of an admin.

        Unlimited users get UNLIMITED_AI_SENTINEL as their stored limit.

        Raises:
            ValidationError: If a field is missing or malformed.
            ConflictError: If the username or PIN is taken.
        """
        if not username or not password or not pin:
            raise ValidationError("Username, password, and PIN are required")

        unlimited = bool(unlimited_ai)
        if unlimited:
            limit = UNLIMITED_AI_SENTINEL
        elif daily_ai_limit is None:
            limit = DEFAULT_DAILY_AI_LIMIT
        else:
            limit = require_daily_limit(daily_ai_limit)

        model = UserModel(
            username=require_username(username).lower(),
            password_hash=hash_password(require_password(password)),
            pin=require_pin(pin),
            email=(email or "").strip() or None,
            role=ROLE_ADMIN_CREATED,
            unlimited_ai=unlimited,
            daily_ai_limit=limit,
            created_by=created_by,
        )
        self._insert(model)
        logger.info("Admin %s created user: %s", created_by, model.username)
        return user_to_info(model)

    def list_users(self) -> List[UserInfo]:
        """List all users, newest first."""
        models = (
            self.db.query(UserModel)
            .order_by(UserModel.created_at.desc(), UserModel.id.desc())
            .all()
        )
        return [user_to_info(m) for m in models]

    def get_user(self, user_id: int) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
        if model is None:
            raise NotFoundError("User", user_id)
        return model

    def update_user(self, user_id: int, updates: Dict[str, Any]) -> UserInfo:
        """Apply a partial update.

        Args:
            user_id: ID of the user to update.
            updates: Field name to new value; only USER_UPDATE_FIELDS are
                recognised, and a None counts as absent except for email.

        Returns:
            The updated user profile.

        Raises:
            NoUpdatesProvidedError: If no recognised field is present.
            ValidationError: If a value is malformed.
            NotFoundError: If the user does not exist.
            ConflictError: If the new username or PIN is taken.
        """
        changes = {
            key: value
            for key, value in updates.items()
            if key in USER_UPDATE_FIELDS
            and (value is not None or key in NULLABLE_UPDATE_FIELDS)
        }
        if not changes:
            raise NoUpdatesProvidedError()

        model = self.get_user(user_id)

        if "username" in changes:
            model.username = require_username(changes["username"]).lower()
        if "password" in changes:
            model.password_hash = hash_password(require_password(changes["password"]))
        if "pin" in changes:
            model.pin = require_pin(changes["pin"])
        if "email" in changes:
            model.email = (changes["email"] or "").strip() or None
        if "unlimited_ai" in changes:
            model.unlimited_ai = bool(changes["unlimited_ai"])
        if "daily_ai_limit" in changes:
            model.daily_ai_limit = require_daily_limit(changes["daily_ai_limit"])

        if model.unlimited_ai:
            model.daily_ai_limit = UNLIMITED_AI_SENTINEL
        elif model.daily_ai_limit == UNLIMITED_AI_SENTINEL:
            model.daily_ai_limit = DEFAULT_DAILY_AI_LIMIT

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_conflict_message(e)) from e
        self.db.refresh(model)
        logger.info("Updated user %d (%s)", model.id, ", ".join(sorted(changes)))
        return user_to_info(model)

    def delete_user(self, user_id: int) -> None:
        model = self.get_user(user_id)
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted user %d", user_id)

    # --- Daily AI calls ---

    def get_daily_calls(self, user_id: int) -> DailyCallsResponse:
        """Return today's usage for a user."""
        user = self.get_user(user_id)
        row = (
            self.db.query(DailyCallCountModel)
            .filter(
                DailyCallCountModel.user_id == user.id,
                DailyCallCountModel.call_date == self.today(),
            )
            .first()
        )
        return DailyCallsResponse(
            daily_used=row.call_count if row else 0,
            daily_limit=None if user.unlimited_ai else user.daily_ai_limit,
            unlimited=bool(user.unlimited_ai),
        )

    def record_call(self, user_id: int) -> bool:
        """Count one AI call for today.

        Returns:
            False for unlimited users (nothing is written), True otherwise.
        """
        user = self.get_user(user_id)
        if user.unlimited_ai:
            return False
        self.db.execute(self._increment_statement(user.id, self.today()))
        self.db.commit()
        return True

    def _increment_statement(self, user_id: int, call_date: date):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise ConfigurationError(f"Unsupported database dialect: {dialect}")

        stmt = insert(DailyCallCountModel).values(
            user_id=user_id, call_date=call_date, call_count=1
        )
        return stmt.on_conflict_do_update(
            index_elements=["user_id", "call_date"],
            set_={"call_count": DailyCallCountModel.call_count + 1},
        )

    # --- Helpers ---

    def _insert(self, model: UserModel) -> None:
        # The unique constraints decide; no check-then-insert
        try:
            self.db.add(model)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_conflict_message(e)) from e
        self.db.refresh(model)
