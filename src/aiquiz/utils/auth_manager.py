"""Session-based authentication for admins and users.

This module issues opaque bearer tokens backed by the admin_sessions and
user_sessions tables, verifies them against their expiry, and removes them on
logout. Expiry is checked at verify time only; expired rows stay until
purge_expired_sessions() is called.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

import pytz
from sqlalchemy.orm import Session

from aiquiz.config import ADMIN_SESSION_HOURS, USER_SESSION_DAYS
from aiquiz.core.exceptions import AuthenticationError, ValidationError
from aiquiz.models.admin import AdminSessionModel, AdminUserModel
from aiquiz.models.user import UserModel, UserSessionModel
from aiquiz.schemas.admin import AdminInfo
from aiquiz.schemas.session import AuthSession, OwnerKind
from aiquiz.schemas.user import UserInfo
from aiquiz.utils.converters import admin_to_info, user_to_info
from aiquiz.utils.user_manager import verify_password
from aiquiz.utils.validators import is_valid_pin

logger = logging.getLogger(__name__)

ADMIN_SESSION_LIFETIME = timedelta(hours=ADMIN_SESSION_HOURS)
USER_SESSION_LIFETIME = timedelta(days=USER_SESSION_DAYS)

BEARER_PREFIX = "Bearer "


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def generate_token() -> str:
    """Return a random 256-bit token as 64 hex characters."""
    return secrets.token_hex(32)


def strip_bearer(token: Optional[str]) -> Optional[str]:
    """Remove an optional "Bearer " prefix from a header value.

    Args:
        token: Raw Authorization / X-Admin-Token header value.

    Returns:
        The bare token, or None if nothing is left.
    """
    if not token:
        return None
    token = token.strip()
    if token == BEARER_PREFIX.strip() or token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):].strip()
    return token or None


class AuthManager:
    """Manages login, verification and logout for both account kinds."""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        """Initialize AuthManager.

        Args:
            db: SQLAlchemy Session.
            clock: Returns the current timezone-aware time. Defaults to UTC now.
        """
        self.db = db
        self.clock = clock or utc_now

    # --- Admin sessions ---

    def login_admin(self, pin: Optional[str]) -> Tuple[AdminInfo, str]:
        """Log an admin in by PIN.

        Args:
            pin: 4-digit PIN.

        Returns:
            Tuple of the admin profile and a new session token.

        Raises:
            ValidationError: If the PIN is malformed.
            AuthenticationError: If no admin has this PIN.
        """
        if not is_valid_pin(pin):
            raise ValidationError("Invalid PIN format")

        admin = self.db.query(AdminUserModel).filter(AdminUserModel.pin == pin).first()
        if admin is None:
            logger.info("Admin login rejected")
            raise AuthenticationError("Invalid PIN")

        token = self._create_session(AdminSessionModel, admin_id=admin.id)
        logger.info("Admin %s logged in", admin.username)
        return admin_to_info(admin), token

    def verify_admin(self, token: Optional[str]) -> Optional[AuthSession]:
        """Resolve an admin bearer token.

        Returns:
            AuthSession for a live session, None otherwise. Never raises for
            missing, unknown or expired tokens.
        """
        token = strip_bearer(token)
        if token is None:
            return None
        row = (
            self.db.query(AdminSessionModel, AdminUserModel)
            .join(AdminUserModel, AdminUserModel.id == AdminSessionModel.admin_id)
            .filter(
                AdminSessionModel.session_token == token,
                AdminSessionModel.expires_at > self.clock(),
            )
            .first()
        )
        if row is None:
            return None
        session, admin = row
        return AuthSession(
            owner_kind=OwnerKind.ADMIN,
            owner_id=admin.id,
            expires_at=session.expires_at,
            admin=admin_to_info(admin),
        )

    def logout_admin(self, token: Optional[str]) -> None:
        self._delete_session(AdminSessionModel, token)

    # --- User sessions ---

    def login_user(
        self,
        username: Optional[str],
        password: Optional[str],
        pin: Optional[str],
    ) -> Tuple[UserInfo, str]:
        """Log a user in with username, password and PIN.

        Unknown user, wrong password and wrong PIN all produce the same error.

        Returns:
            Tuple of the user profile and a new session token.

        Raises:
            ValidationError: If a field is missing.
            AuthenticationError: If the credentials do not match.
        """
        if not username or not password or not pin:
            raise ValidationError("Username, password, and PIN are required")

        user = (
            self.db.query(UserModel)
            .filter(UserModel.username == username.strip().lower())
            .first()
        )
        if (
            user is None
            or not verify_password(password, user.password_hash)
            or not is_valid_pin(pin)
            or not secrets.compare_digest(user.pin.encode(), pin.encode())
        ):
            logger.info("User login rejected")
            raise AuthenticationError("Invalid credentials")

        token = self.create_user_session(user)
        logger.info("User %s logged in", user.username)
        return user_to_info(user), token

    def create_user_session(self, user: UserModel) -> str:
        """Open a session for an already authenticated user (login, register)."""
        return self._create_session(UserSessionModel, user_id=user.id)

    def verify_user(self, token: Optional[str]) -> Optional[AuthSession]:
        token = strip_bearer(token)
        if token is None:
            return None
        row = (
            self.db.query(UserSessionModel, UserModel)
            .join(UserModel, UserModel.id == UserSessionModel.user_id)
            .filter(
                UserSessionModel.session_token == token,
                UserSessionModel.expires_at > self.clock(),
            )
            .first()
        )
        if row is None:
            return None
        session, user = row
        return AuthSession(
            owner_kind=OwnerKind.USER,
            owner_id=user.id,
            expires_at=session.expires_at,
            user=user_to_info(user),
        )

    def logout_user(self, token: Optional[str]) -> None:
        self._delete_session(UserSessionModel, token)

    # --- Maintenance ---

    def purge_expired_sessions(self) -> int:
        """Delete expired rows from both session tables.

        Returns:
            Number of rows removed.
        """
        now = self.clock()
        removed = 0
        for model in (AdminSessionModel, UserSessionModel):
            removed += (
                self.db.query(model)
                .filter(model.expires_at <= now)
                .delete(synchronize_session=False)
            )
        self.db.commit()
        logger.info("Purged %d expired sessions", removed)
        return removed

    # --- Helpers ---

    def _create_session(self, model, **owner) -> str:
        now = self.clock()
        lifetime = (
            ADMIN_SESSION_LIFETIME if model is AdminSessionModel else USER_SESSION_LIFETIME
        )
        token = generate_token()
        self.db.add(
            model(
                session_token=token,
                login_time=now,
                expires_at=now + lifetime,
                **owner,
            )
        )
        self.db.commit()
        return token

    def _delete_session(self, model, token: Optional[str]) -> None:
        token = strip_bearer(token)
        if token is None:
            return
        deleted = (
            self.db.query(model)
            .filter(model.session_token == token)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Session closed (%s)", model.__tablename__)
