"""Admin user and admin session database models."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class AdminUserModel(Base):
    """Admin account, authenticated by a 4-digit PIN."""

    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False)
    pin = Column(String(4), unique=True, index=True, nullable=False)
    ai_limit = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    sessions = relationship(
        "AdminSessionModel",
        back_populates="admin",
        cascade="all, delete-orphan",
    )


class AdminSessionModel(Base):
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(
        Integer,
        ForeignKey("admin_users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    session_token = Column(String(255), unique=True, index=True, nullable=False)
    login_time = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    admin = relationship("AdminUserModel", back_populates="sessions")
