"""Authenticated session schema.

A verified bearer token resolves to exactly one AuthSession, tagged with the
kind of owner it belongs to.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from aiquiz.schemas.admin import AdminInfo
from aiquiz.schemas.user import UserInfo


class OwnerKind(str, Enum):
    ADMIN = "admin"
    USER = "user"


class AuthSession(BaseModel):
    owner_kind: OwnerKind = Field(description="Which table owns the session.")
    owner_id: int = Field(description="Primary key of the owning admin or user.")
    expires_at: datetime = Field(description="Session is valid while now < expires_at.")
    admin: Optional[AdminInfo] = Field(
        default=None, description="Owner profile when owner_kind is admin."
    )
    user: Optional[UserInfo] = Field(
        default=None, description="Owner profile when owner_kind is user."
    )

    @model_validator(mode="after")
    def check_owner_profile(self):
        if self.owner_kind == OwnerKind.ADMIN and self.admin is None:
            raise ValueError("admin session requires an admin profile")
        if self.owner_kind == OwnerKind.USER and self.user is None:
            raise ValueError("user session requires a user profile")
        return self
