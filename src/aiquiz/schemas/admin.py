"""Admin request/response schema definitions.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdminInfo(BaseModel):
    """Admin profile returned by login and verify (no PIN)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    ai_limit: int = Field(alias="aiLimit")


class AdminRecord(BaseModel):
    """Admin row as listed in the admin dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    pin: str
    ai_limit: int = Field(alias="aiLimit")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class AdminLoginRequest(BaseModel):
    pin: Optional[str] = None


class AdminLoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    admin: AdminInfo
    session_token: str = Field(alias="sessionToken")


class AdminVerifyResponse(BaseModel):
    admin: AdminInfo


class CreateAdminRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    pin: Optional[str] = None
    ai_limit: Optional[int] = Field(default=None, alias="aiLimit")


class UpdateAdminRequest(BaseModel):
    """Partial update; only the fields present in the body are applied."""

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    pin: Optional[str] = None
    ai_limit: Optional[int] = Field(default=None, alias="aiLimit")


class MessageResponse(BaseModel):
    message: str
