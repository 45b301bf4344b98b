import logging
import uuid

from fastapi import Depends, Request, Response
from fastapi_users import (
    BaseUserManager,
    FastAPIUsers,
    InvalidPasswordException,
    UUIDIDMixin,
)
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    CookieTransport,
    JWTStrategy,
)
from fastapi_users.password import PasswordHelper
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase

from voicelink.core.config import settings
from voicelink.core.log_utils import sanitize_for_log
from voicelink.db.models.user import User
from voicelink.db.session import get_user_db

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 100

password_helper = PasswordHelper()


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.SECRET_KEY
    verification_token_secret = settings.SECRET_KEY

    async def validate_password(self, password: str, user) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordException(
                reason=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(password) > MAX_PASSWORD_LENGTH:
            raise InvalidPasswordException(
                reason=f"Password must be less than {MAX_PASSWORD_LENGTH} characters"
            )

    async def on_after_register(self, user: User, request: Request | None = None):
        logger.info(f"User {user.id} ({sanitize_for_log(user.email)}) has registered.")

    async def on_after_login(
        self,
        user: User,
        request: Request | None = None,
        response: Response | None = None,
    ) -> None:
        logger.info(f"User {user.id} ({sanitize_for_log(user.email)}) logged in successfully.")

    async def on_after_update(self, user: User, update_dict: dict, request: Request | None = None):
        logger.info(f"User {user.id} updated fields: {sorted(update_dict)}")


async def get_user_manager(
    user_db: SQLAlchemyUserDatabase = Depends(get_user_db),
):
    """Dependency to get the UserManager instance."""
    yield UserManager(user_db, password_helper)


# --- JWT Strategies ---
def get_access_token_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=settings.SECRET_KEY,
        lifetime_seconds=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        algorithm=settings.ALGORITHM,
    )


def get_session_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=settings.SECRET_KEY,
        lifetime_seconds=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        algorithm=settings.ALGORITHM,
    )


# --- Authentication Transports ---
bearer_transport = BearerTransport(tokenUrl=f"{settings.API_PREFIX}/auth/jwt/login")
cookie_transport = CookieTransport(
    cookie_name=settings.AUTH_COOKIE_NAME,
    cookie_max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
    cookie_path="/",
    cookie_secure=settings.COOKIE_SECURE,
    cookie_httponly=True,
    cookie_samesite=settings.COOKIE_SAMESITE,
)

# --- Authentication Backend Instances ---
# The browser client rides on the session cookie; scripts use bearer tokens.
cookie_auth_backend = AuthenticationBackend(
    name="jwt-cookie-session",
    transport=cookie_transport,
    get_strategy=get_session_jwt_strategy,
)

bearer_auth_backend = AuthenticationBackend(
    name="jwt-bearer-access",
    transport=bearer_transport,
    get_strategy=get_access_token_jwt_strategy,
)


fastapi_users_instance = FastAPIUsers[User, uuid.UUID](
    get_user_manager,
    [
        cookie_auth_backend,
        bearer_auth_backend,
    ],
)

current_active_user = fastapi_users_instance.current_user(active=True)
current_optional_user = fastapi_users_instance.current_user(active=True, optional=True)
current_active_superuser = fastapi_users_instance.current_user(active=True, superuser=True)
