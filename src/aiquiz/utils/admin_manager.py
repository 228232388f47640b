"""Admin account management."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aiquiz.config import DEFAULT_ADMIN_AI_LIMIT
from aiquiz.core.exceptions import ConflictError, NoUpdatesProvidedError, NotFoundError
from aiquiz.models.admin import AdminUserModel
from aiquiz.schemas.admin import AdminRecord
from aiquiz.utils.converters import admin_to_record
from aiquiz.utils.validators import require_daily_limit, require_pin, require_username

logger = logging.getLogger(__name__)

ADMIN_UPDATE_FIELDS = ("username", "pin", "ai_limit")


def _conflict_message(error: IntegrityError) -> str:
    detail = str(error.orig).lower()
    if "username" in detail:
        return "Username already exists"
    if "pin" in detail:
        return "PIN already exists"
    return "Username or PIN already exists"


class AdminManager:
    """Manages admin users. Usernames are case-sensitive here."""

    def __init__(self, db: Session):
        self.db = db

    def list_admins(self) -> List[AdminRecord]:
        models = (
            self.db.query(AdminUserModel)
            .order_by(AdminUserModel.created_at.desc(), AdminUserModel.id.desc())
            .all()
        )
        return [admin_to_record(m) for m in models]

    def count_admins(self) -> int:
        return self.db.query(func.count(AdminUserModel.id)).scalar() or 0

    def get_admin(self, admin_id: int) -> AdminUserModel:
        model = (
            self.db.query(AdminUserModel)
            .filter(AdminUserModel.id == admin_id)
            .first()
        )
        if model is None:
            raise NotFoundError("Admin", admin_id)
        return model

    def create_admin(
        self,
        username: Optional[str],
        pin: Optional[str],
        ai_limit: Optional[int] = None,
    ) -> AdminRecord:
        """Create an admin.

        Raises:
            ValidationError: If the username is empty or the PIN malformed.
            ConflictError: If the username or PIN is taken.
        """
        model = AdminUserModel(
            username=require_username(username),
            pin=require_pin(pin),
            ai_limit=(
                DEFAULT_ADMIN_AI_LIMIT if ai_limit is None else require_daily_limit(ai_limit)
            ),
        )
        try:
            self.db.add(model)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_conflict_message(e)) from e
        self.db.refresh(model)
        logger.info("Created admin: %s", model.username)
        return admin_to_record(model)

    def update_admin(self, admin_id: int, updates: Dict[str, Any]) -> AdminRecord:
        """Apply a partial update of username, pin and ai_limit.

        Raises:
            NoUpdatesProvidedError: If no recognised field is present.
            NotFoundError: If the admin does not exist.
            ConflictError: If the new username or PIN is taken.
        """
        changes = {
            key: value
            for key, value in updates.items()
            if key in ADMIN_UPDATE_FIELDS and value is not None
        }
        if not changes:
            raise NoUpdatesProvidedError()

        model = self.get_admin(admin_id)
        if "username" in changes:
            model.username = require_username(changes["username"])
        if "pin" in changes:
            model.pin = require_pin(changes["pin"])
        if "ai_limit" in changes:
            model.ai_limit = require_daily_limit(changes["ai_limit"])

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_conflict_message(e)) from e
        self.db.refresh(model)
        logger.info("Updated admin %d (%s)", model.id, ", ".join(sorted(changes)))
        return admin_to_record(model)

    def delete_admin(self, admin_id: int) -> None:
        """Delete an admin and its sessions.

        Raises:
            ConflictError: If this would remove the last admin.
            NotFoundError: If the admin does not exist.
        """
        if self.count_admins() <= 1:
            raise ConflictError("Cannot delete the last admin user")
        model = self.get_admin(admin_id)
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted admin %d", admin_id)
