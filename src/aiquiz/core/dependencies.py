"""Dependency injection module for FastAPI.

This module provides request-scoped managers and the session checks used by
the protected routes.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from aiquiz.core.database import get_db
from aiquiz.schemas.session import AuthSession
from aiquiz.utils import admin_manager
from aiquiz.utils import auth_manager
from aiquiz.utils import user_manager


def get_auth_manager(db: Session = Depends(get_db)) -> auth_manager.AuthManager:
    """Get AuthManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        AuthManager instance.
    """
    return auth_manager.AuthManager(db)


def get_admin_manager(db: Session = Depends(get_db)) -> admin_manager.AdminManager:
    """Get AdminManager instance with request-scoped DB session."""
    return admin_manager.AdminManager(db)


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session."""
    return user_manager.UserManager(db)


AuthManagerDep = Annotated[auth_manager.AuthManager, Depends(get_auth_manager)]
AdminManagerDep = Annotated[admin_manager.AdminManager, Depends(get_admin_manager)]
UserManagerDep = Annotated[user_manager.UserManager, Depends(get_user_manager)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def require_admin_session(
    auth: AuthManagerDep,
    authorization: Optional[str] = Header(default=None),
) -> AuthSession:
    """Admin session from `Authorization: Bearer <token>`.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired.
    """
    session = auth.verify_admin(authorization)
    if session is None:
        raise _unauthorized("Unauthorized")
    return session


def require_admin_token_header(
    auth: AuthManagerDep,
    x_admin_token: Optional[str] = Header(default=None),
) -> AuthSession:
    """Admin session from `X-Admin-Token`, used by the user management routes.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired.
    """
    session = auth.verify_admin(x_admin_token)
    if session is None:
        raise _unauthorized("Unauthorized")
    return session


def require_user_session(
    auth: AuthManagerDep,
    authorization: Optional[str] = Header(default=None),
) -> AuthSession:
    """User session from `Authorization: Bearer <token>`.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired.
    """
    if not auth_manager.strip_bearer(authorization):
        raise _unauthorized("No token provided")
    session = auth.verify_user(authorization)
    if session is None:
        raise _unauthorized("Invalid or expired session")
    return session


AdminSessionDep = Annotated[AuthSession, Depends(require_admin_session)]
AdminTokenSessionDep = Annotated[AuthSession, Depends(require_admin_token_header)]
UserSessionDep = Annotated[AuthSession, Depends(require_user_session)]
