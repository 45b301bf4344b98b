# backend/voicelink/api/routers/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users import exceptions

from voicelink.core.log_utils import sanitize_for_log
from voicelink.core.rate_limit import limiter
from voicelink.core.users import (
    UserManager,
    cookie_transport,
    current_active_user,
    get_session_jwt_strategy,
    get_user_manager,
    password_helper,
)
from voicelink.db.models.user import User as UserModel
from voicelink.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    UserCreate,
    UserRead,
    UserUpdate,
)

logger = logging.getLogger(__name__)

AUTH_RATE_LIMIT = "5/15minutes"

auth_router = APIRouter(
    tags=["Auth - Authentication & Profile"],
)


async def _set_session_cookie(response: Response, user: UserModel) -> None:
    token = await get_session_jwt_strategy().write_token(user)
    response.set_cookie(
        key=cookie_transport.cookie_name,
        value=token,
        max_age=cookie_transport.cookie_max_age,
        path=cookie_transport.cookie_path,
        domain=cookie_transport.cookie_domain,
        secure=cookie_transport.cookie_secure,
        httponly=cookie_transport.cookie_httponly,
        samesite=cookie_transport.cookie_samesite,
    )


@auth_router.post(
    "/signup",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and start a session",
)
@limiter.limit(AUTH_RATE_LIMIT)
async def signup(
    request: Request,
    response: Response,
    user_create: UserCreate,
    user_manager: UserManager = Depends(get_user_manager),
):
    try:
        user = await user_manager.create(user_create, safe=True, request=request)
    except exceptions.UserAlreadyExists:
        logger.info(f"Signup rejected, email already registered: {sanitize_for_log(user_create.email)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email",
        )
    except exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.reason)

    await _set_session_cookie(response, user)
    return user


@auth_router.post("/login", response_model=UserRead, summary="Log in with email and password")
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    user_manager: UserManager = Depends(get_user_manager),
):
    email = credentials.email.lower()
    user = await user_manager.authenticate(
        OAuth2PasswordRequestForm(username=email, password=credentials.password)
    )

    if user is None:
        logger.warning(f"Login failed for {sanitize_for_log(email)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password"
        )
    if not user.is_active:
        logger.warning(f"Login attempt for inactive user: {user.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="LOGIN_USER_INACTIVE")

    await _set_session_cookie(response, user)
    await user_manager.on_after_login(user, request, response)
    return user


@auth_router.post("/logout", summary="End the cookie session")
async def logout(response: Response):
    response.delete_cookie(
        key=cookie_transport.cookie_name,
        path=cookie_transport.cookie_path,
        domain=cookie_transport.cookie_domain,
        secure=cookie_transport.cookie_secure,
        httponly=cookie_transport.cookie_httponly,
        samesite=cookie_transport.cookie_samesite,
    )
    return {"message": "Logged out successfully"}


@auth_router.get("/user", response_model=UserRead, summary="Get the logged-in user")
async def read_current_user(current_user: UserModel = Depends(current_active_user)):
    return current_user


@auth_router.put("/profile", response_model=UserRead, summary="Update profile fields")
async def update_profile(
    request: Request,
    profile: ProfileUpdate,
    current_user: UserModel = Depends(current_active_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    user_update = UserUpdate(**profile.model_dump())
    try:
        return await user_manager.update(user_update, current_user, safe=True, request=request)
    except exceptions.UserAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already in use by another account",
        )


@auth_router.put("/change-password", summary="Change password (logged in users)")
@limiter.limit("3/minute")
async def change_password(
    request: Request,
    body: ChangePasswordRequest,
    current_user: UserModel = Depends(current_active_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    """Requires the current password; the new one goes through the usual password rules."""
    verified, _ = password_helper.verify_and_update(
        body.current_password, current_user.hashed_password
    )
    if not verified:
        logger.warning(f"Password change failed for user {current_user.id}: wrong current password")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect"
        )

    try:
        await user_manager.update(
            UserUpdate(password=body.new_password), current_user, safe=True, request=request
        )
    except exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.reason)

    logger.info(f"Password changed for user {current_user.id}")
    return {"message": "Password changed successfully"}
