"""Conversions between ORM rows and API schemas."""

from aiquiz.models.admin import AdminUserModel
from aiquiz.models.user import UserModel
from aiquiz.schemas.admin import AdminInfo, AdminRecord
from aiquiz.schemas.user import UserInfo


def admin_to_info(model: AdminUserModel) -> AdminInfo:
    return AdminInfo(id=model.id, username=model.username, ai_limit=model.ai_limit)


def admin_to_record(model: AdminUserModel) -> AdminRecord:
    return AdminRecord(
        id=model.id,
        username=model.username,
        pin=model.pin,
        ai_limit=model.ai_limit,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def user_to_info(model: UserModel) -> UserInfo:
    return UserInfo(
        id=model.id,
        username=model.username,
        email=model.email,
        role=model.role,
        unlimited_ai=bool(model.unlimited_ai),
        daily_ai_limit=model.daily_ai_limit,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
