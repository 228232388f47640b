"""Admin authentication and admin management routes.

Every route except login, verify and logout requires an admin session token
in the `Authorization: Bearer <token>` header.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, status

from aiquiz.core.dependencies import (
    AdminManagerDep,
    AdminSessionDep,
    AuthManagerDep,
)
from aiquiz.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from aiquiz.schemas.admin import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminRecord,
    AdminVerifyResponse,
    CreateAdminRequest,
    MessageResponse,
    UpdateAdminRequest,
)
from aiquiz.utils.auth_manager import strip_bearer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/login", response_model=AdminLoginResponse, summary="Admin PIN login")
def login(req: AdminLoginRequest, auth: AuthManagerDep) -> AdminLoginResponse:
    """Login with a 4-digit PIN.

    Args:
        req: Login request with the PIN.
        auth: Injected AuthManager instance.

    Returns:
        AdminLoginResponse with the admin profile and a 24 hour session token.

    Raises:
        HTTPException: 400 for a malformed PIN, 401 for an unknown PIN.
    """
    try:
        admin, token = auth.login_admin(req.pin)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return AdminLoginResponse(admin=admin, session_token=token)


@router.get("/verify", response_model=AdminVerifyResponse, summary="Verify admin session")
def verify(
    auth: AuthManagerDep,
    authorization: Optional[str] = Header(default=None),
) -> AdminVerifyResponse:
    if not strip_bearer(authorization):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )
    session = auth.verify_admin(authorization)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return AdminVerifyResponse(admin=session.admin)


@router.post("/logout", response_model=MessageResponse, summary="Admin logout")
def logout(
    auth: AuthManagerDep,
    authorization: Optional[str] = Header(default=None),
) -> MessageResponse:
    """Delete the session behind the token. Unknown or missing tokens are fine."""
    auth.logout_admin(authorization)
    return MessageResponse(message="Logged out successfully")


@router.get("/admins", response_model=List[AdminRecord], summary="List admins")
def list_admins(
    admin_manager: AdminManagerDep,
    session: AdminSessionDep,
) -> List[AdminRecord]:
    return admin_manager.list_admins()


@router.post("/admins", response_model=AdminRecord, summary="Create admin")
def create_admin(
    req: CreateAdminRequest,
    admin_manager: AdminManagerDep,
    session: AdminSessionDep,
) -> AdminRecord:
    """Create a new admin.

    Raises:
        HTTPException: 400 for invalid input or a duplicate username/PIN.
    """
    try:
        return admin_manager.create_admin(req.username, req.pin, req.ai_limit)
    except (ValidationError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/admins/{admin_id}", response_model=AdminRecord, summary="Update admin")
def update_admin(
    admin_id: int,
    req: UpdateAdminRequest,
    admin_manager: AdminManagerDep,
    session: AdminSessionDep,
) -> AdminRecord:
    """Update only the fields present in the request body.

    Raises:
        HTTPException: 400 for no/invalid updates or a duplicate, 404 for an
            unknown admin.
    """
    try:
        return admin_manager.update_admin(admin_id, req.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ValidationError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/admins/{admin_id}", response_model=MessageResponse, summary="Delete admin")
def delete_admin(
    admin_id: int,
    admin_manager: AdminManagerDep,
    session: AdminSessionDep,
) -> MessageResponse:
    """Delete an admin. The last remaining admin can never be deleted.

    Raises:
        HTTPException: 400 when deleting the last admin, 404 for an unknown id.
    """
    try:
        admin_manager.delete_admin(admin_id)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    logger.info("Admin %s deleted admin %d", session.admin.username, admin_id)
    return MessageResponse(message="Admin deleted successfully")
