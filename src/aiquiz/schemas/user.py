"""User request/response schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserInfo(BaseModel):
    """User profile without secret fields."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    email: Optional[str] = None
    role: str
    unlimited_ai: bool = Field(alias="unlimitedAI")
    daily_ai_limit: int = Field(alias="dailyAILimit")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    pin: Optional[str] = None
    email: Optional[str] = None


class UserLoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    pin: Optional[str] = None


class UserAuthResponse(BaseModel):
    """Returned by register and login."""

    model_config = ConfigDict(populate_by_name=True)

    user: UserInfo
    session_token: str = Field(alias="sessionToken")


class UserVerifyResponse(BaseModel):
    user: UserInfo


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    password: Optional[str] = None
    pin: Optional[str] = None
    email: Optional[str] = None
    unlimited_ai: Optional[bool] = Field(default=None, alias="unlimitedAI")
    daily_ai_limit: Optional[int] = Field(default=None, alias="dailyAILimit")


class UpdateUserRequest(BaseModel):
    """Partial update; only the fields present in the body are applied."""

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    password: Optional[str] = None
    pin: Optional[str] = None
    email: Optional[str] = None
    unlimited_ai: Optional[bool] = Field(default=None, alias="unlimitedAI")
    daily_ai_limit: Optional[int] = Field(default=None, alias="dailyAILimit")


class DailyCallsResponse(BaseModel):
    """Today's AI usage. daily_limit is None for unlimited users."""

    model_config = ConfigDict(populate_by_name=True)

    daily_used: int = Field(alias="dailyUsed")
    daily_limit: Optional[int] = Field(alias="dailyLimit")
    unlimited: bool
