"""User routes.

Self-service routes (register, login, verify, logout, daily-calls,
record-call) authenticate with the user's own bearer token. The management
routes require an admin token in the `X-Admin-Token` header.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, status

from aiquiz.core.dependencies import (
    AdminTokenSessionDep,
    AuthManagerDep,
    UserManagerDep,
    UserSessionDep,
)
from aiquiz.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from aiquiz.schemas.admin import MessageResponse
from aiquiz.schemas.user import (
    CreateUserRequest,
    DailyCallsResponse,
    RegisterRequest,
    UpdateUserRequest,
    UserAuthResponse,
    UserInfo,
    UserLoginRequest,
    UserVerifyResponse,
)
from aiquiz.utils.converters import user_to_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


# --- Self-service ---


@router.post("/register", response_model=UserAuthResponse, summary="Register")
def register(
    req: RegisterRequest,
    user_manager: UserManagerDep,
    auth: AuthManagerDep,
) -> UserAuthResponse:
    """Register a self-registered user and log them in.

    Registration requirements:
    - Username of at least 3 characters, unique regardless of case
    - Password of at least 6 characters
    - 4-digit PIN, unique among users

    Args:
        req: Registration request.
        user_manager: Injected UserManager instance.
        auth: Injected AuthManager instance.

    Returns:
        UserAuthResponse with the new profile and a 7 day session token.

    Raises:
        HTTPException: 400 for invalid input or a duplicate username/PIN.
    """
    try:
        model = user_manager.register_user(req.username, req.password, req.pin, req.email)
    except (ValidationError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    token = auth.create_user_session(model)
    return UserAuthResponse(user=user_to_info(model), session_token=token)


@router.post("/login", response_model=UserAuthResponse, summary="User login")
def login(req: UserLoginRequest, auth: AuthManagerDep) -> UserAuthResponse:
    try:
        user, token = auth.login_user(req.username, req.password, req.pin)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return UserAuthResponse(user=user, session_token=token)


@router.get("/verify", response_model=UserVerifyResponse, summary="Verify user session")
def verify(session: UserSessionDep) -> UserVerifyResponse:
    return UserVerifyResponse(user=session.user)


@router.post("/logout", response_model=MessageResponse, summary="User logout")
def logout(
    auth: AuthManagerDep,
    authorization: Optional[str] = Header(default=None),
) -> MessageResponse:
    auth.logout_user(authorization)
    return MessageResponse(message="Logged out successfully")


@router.get("/daily-calls", response_model=DailyCallsResponse, summary="Today's AI usage")
def daily_calls(
    session: UserSessionDep,
    user_manager: UserManagerDep,
) -> DailyCallsResponse:
    return user_manager.get_daily_calls(session.owner_id)


@router.post("/record-call", response_model=MessageResponse, summary="Count one AI call")
def record_call(
    session: UserSessionDep,
    user_manager: UserManagerDep,
) -> MessageResponse:
    """Increment today's AI call counter for the session's user.

    Unlimited users are not counted.
    """
    if not user_manager.record_call(session.owner_id):
        return MessageResponse(message="Call recorded (unlimited user)")
    return MessageResponse(message="Call recorded successfully")


# --- Admin managed ---


@router.get("", response_model=List[UserInfo], summary="List users")
def list_users(
    user_manager: UserManagerDep,
    admin_session: AdminTokenSessionDep,
) -> List[UserInfo]:
    return user_manager.list_users()


@router.post("", response_model=UserInfo, summary="Create user")
def create_user(
    req: CreateUserRequest,
    user_manager: UserManagerDep,
    admin_session: AdminTokenSessionDep,
) -> UserInfo:
    """Create an admin-created user, optionally with unlimited AI access.

    Raises:
        HTTPException: 400 for invalid input or a duplicate username/PIN.
    """
    try:
        return user_manager.create_user(
            username=req.username,
            password=req.password,
            pin=req.pin,
            email=req.email,
            unlimited_ai=req.unlimited_ai,
            daily_ai_limit=req.daily_ai_limit,
            created_by=admin_session.admin.username,
        )
    except (ValidationError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{user_id}", response_model=UserInfo, summary="Update user")
def update_user(
    user_id: int,
    req: UpdateUserRequest,
    user_manager: UserManagerDep,
    admin_session: AdminTokenSessionDep,
) -> UserInfo:
    try:
        return user_manager.update_user(user_id, req.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ValidationError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete user")
def delete_user(
    user_id: int,
    user_manager: UserManagerDep,
    admin_session: AdminTokenSessionDep,
) -> MessageResponse:
    try:
        user_manager.delete_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="User deleted successfully")
