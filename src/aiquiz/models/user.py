"""Regular user and user session database models.

Usernames are stored lower-cased so the unique constraint is effectively
case-insensitive.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    pin = Column(String(4), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="self-registered")
    unlimited_ai = Column(Boolean, nullable=False, default=False)
    daily_ai_limit = Column(Integer, nullable=False, default=10)
    created_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    sessions = relationship(
        "UserSessionModel",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    daily_calls = relationship(
        "DailyCallCountModel",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class UserSessionModel(Base):
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    session_token = Column(String(255), unique=True, index=True, nullable=False)
    login_time = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("UserModel", back_populates="sessions")
