"""ORM models. Importing this package registers every table on Base.metadata."""

from .base import Base
from .admin import AdminSessionModel, AdminUserModel
from .user import UserModel, UserSessionModel
from .daily_call import DailyCallCountModel

__all__ = [
    "Base",
    "AdminUserModel",
    "AdminSessionModel",
    "UserModel",
    "UserSessionModel",
    "DailyCallCountModel",
]
