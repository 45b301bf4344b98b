# backend/voicelink/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi_users import schemas as fastapi_users_schemas
from fastapi_users.exceptions import UserNotExists
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voicelink.api.routers.auth import auth_router as custom_auth_router
from voicelink.api.routers.feedback import router as feedback_router
from voicelink.api.routers.translate import router as translate_router
from voicelink.api.routers.translations import router as translations_router
from voicelink.api.routers.usage import router as usage_router
from voicelink.api.routers.voices import router as voices_router
from voicelink.core.config import settings
from voicelink.core.rate_limit import limiter
from voicelink.core.request_context import RequestContextMiddleware, get_request_context
from voicelink.core.users import UserManager, bearer_auth_backend, fastapi_users_instance

# Import all models to ensure they are registered in the registry
from voicelink.db import base  # noqa: F401
from voicelink.db import session as db_session_module
from voicelink.db.models.user import User as UserModel
from voicelink.db.session import get_async_session, lifespan_db_manager
from voicelink.exceptions import (
    InvalidAudioError,
    NoSpeechDetectedError,
    StorageUnavailableError,
    TranslationPipelineError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def _request_id() -> str | None:
    ctx = get_request_context()
    return ctx.request_id if ctx else None


async def _ensure_first_superuser() -> None:
    if not (settings.FIRST_SUPERUSER_EMAIL and settings.FIRST_SUPERUSER_PASSWORD):
        logger.info("LIFESPAN_HOOK: FIRST_SUPERUSER_EMAIL not set. Skipping superuser creation.")
        return
    if db_session_module.FastAPISessionLocal is None:
        logger.error("LIFESPAN_HOOK: Session factory missing. Skipping superuser creation.")
        return

    async with db_session_module.FastAPISessionLocal() as session:
        user_manager = UserManager(SQLAlchemyUserDatabase(session, UserModel))
        try:
            existing_user = await user_manager.get_by_email(settings.FIRST_SUPERUSER_EMAIL)
            logger.info(
                f"LIFESPAN_HOOK: Initial superuser {settings.FIRST_SUPERUSER_EMAIL} "
                f"(ID: {existing_user.id}) already exists."
            )
        except UserNotExists:
            created = await user_manager.create(
                fastapi_users_schemas.BaseUserCreate(
                    email=settings.FIRST_SUPERUSER_EMAIL,
                    password=settings.FIRST_SUPERUSER_PASSWORD,
                    is_superuser=True,
                    is_active=True,
                    is_verified=True,
                ),
                safe=False,
            )
            logger.info(
                f"LIFESPAN_HOOK: Initial superuser {settings.FIRST_SUPERUSER_EMAIL} "
                f"(ID: {created.id}) created."
            )


@asynccontextmanager
async def lifespan(_app_instance: FastAPI):
    logger.info(f"Starting up {settings.APP_NAME} v{settings.APP_VERSION}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        await lifespan_db_manager(_app_instance, "startup")
        logger.info("LIFESPAN_HOOK: Database resources initialized via lifespan_db_manager.")
    except Exception as e:
        logger.critical(
            f"LIFESPAN_HOOK: CRITICAL - Failed to initialize database resources: {e}", exc_info=True
        )
        raise

    settings.AUDIO_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    try:
        await _ensure_first_superuser()
    except SQLAlchemyError as e:
        logger.error(f"LIFESPAN_HOOK: Error during initial superuser creation: {e}", exc_info=True)

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    try:
        await lifespan_db_manager(_app_instance, "shutdown")
        logger.info("LIFESPAN_HOOK: Database resources disposed via lifespan_db_manager.")
    except Exception as e:
        logger.error(f"LIFESPAN_HOOK: Error during database resource disposal: {e}", exc_info=True)


effective_root_path = "/" + settings.ROOT_PATH.strip("/") if settings.ROOT_PATH.strip("/") else ""

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    lifespan=lifespan,
    root_path=effective_root_path,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
)

# --- Rate Limiting Setup ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# --- Middleware ---
if settings.BACKEND_CORS_ORIGINS:
    origins = [origin.strip("/") for origin in settings.BACKEND_CORS_ORIGINS if origin.strip("/")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS enabled for origins: {origins}")
else:
    logger.info("CORS disabled (BACKEND_CORS_ORIGINS not configured).")

# Added last so it wraps everything else.
app.add_middleware(RequestContextMiddleware)


# --- Exception Handlers ---
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_details = exc.errors()
    logger.warning(
        f"Request validation error: {request.method} {request.url.path} - Errors: {error_details}",
        extra={"errors": error_details, "request_id": _request_id()},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(error_details)},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler_custom(request: Request, exc: HTTPException):
    log_message = (
        f"HTTPException: Status={exc.status_code}, Detail='{exc.detail}' "
        f"for {request.method} {request.url.path}"
    )
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message, exc_info=True)
    else:
        logger.warning(log_message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error(
        f"Storage unavailable during {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"request_id": _request_id()},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Service temporarily unavailable. Please try again."},
    )


@app.exception_handler(TranslationPipelineError)
async def translation_pipeline_error_handler(request: Request, exc: TranslationPipelineError):
    if isinstance(exc, NoSpeechDetectedError | InvalidAudioError):
        logger.warning(f"Rejected audio on {request.method} {request.url.path}: {exc}")
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        logger.error(
            f"Translation pipeline failed on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def generic_exception_handler_custom(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception during request: {request.method} {request.url.path}", exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected internal server error occurred."},
    )


# --- API Router Definition and Inclusions ---
api_router = APIRouter()
api_router.include_router(custom_auth_router, prefix="/auth")
api_router.include_router(
    fastapi_users_instance.get_auth_router(bearer_auth_backend),
    prefix="/auth/jwt",
    tags=["Auth - Bearer Tokens"],
)
api_router.include_router(usage_router)
api_router.include_router(translate_router)
api_router.include_router(translations_router)
api_router.include_router(feedback_router)
api_router.include_router(voices_router)


@api_router.get(
    "/healthz",
    tags=["Health Checks"],
    summary="Detailed API and Dependencies Health Check",
    status_code=status.HTTP_200_OK,
)
async def health_check_detailed(db: AsyncSession = Depends(get_async_session)):
    db_status = "unavailable"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error(
            f"Health check (detailed): Database connection failed. Error: {e}",
            exc_info=settings.DEBUG,
        )
    dependencies_status = {"database": db_status}
    if db_status == "connected":
        return {"status": "ok", "dependencies": dependencies_status}
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"status": "degraded", "dependencies": dependencies_status},
    )


app.include_router(api_router, prefix=settings.API_PREFIX)

# Saved recordings and synthesized speech are served from here.
settings.AUDIO_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get(
    "/health",
    tags=["System Health"],
    summary="Basic System Liveness Check",
    status_code=status.HTTP_200_OK,
    include_in_schema=False,
)
async def health_check_basic_system():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Uvicorn server directly for {settings.APP_NAME} (local debugging)...")
    uvicorn.run(
        "voicelink.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
