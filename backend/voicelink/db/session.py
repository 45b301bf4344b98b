# backend/voicelink/db/session.py
"""
Engines and session factories.

The web app and each Celery worker process own separate engines: the app's is
created in the FastAPI lifespan, a worker's on ``worker_process_init``.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from voicelink.core.config import settings
from voicelink.db.models.user import User

logger = logging.getLogger(__name__)


def _redact_url(db_url: str) -> str:
    return db_url.split("@")[0] + "@..." if "@" in db_url else db_url


def _build_engine(db_url: str, echo: bool) -> AsyncEngine:
    engine_kwargs: dict = {"echo": echo}
    if db_url.startswith("sqlite"):
        # Concurrent writers wait for the lock instead of failing immediately.
        engine_kwargs["connect_args"] = {"timeout": 30}
    else:
        engine_kwargs["pool_pre_ping"] = True
    return create_async_engine(db_url, **engine_kwargs)


def _session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


# --- Web application ---
fastapi_async_engine: AsyncEngine | None = None
FastAPISessionLocal: async_sessionmaker[AsyncSession] | None = None


def _initialize_fastapi_db_resources_sync() -> None:
    global fastapi_async_engine, FastAPISessionLocal

    if fastapi_async_engine is not None:
        return

    db_url = settings.ASYNC_SQLALCHEMY_DATABASE_URL
    try:
        engine = _build_engine(db_url, echo=settings.DB_ECHO)
    except (SQLAlchemyError, ValueError) as e:
        logger.critical(f"Could not create database engine for {_redact_url(db_url)}: {e}")
        raise RuntimeError(f"Database engine could not be created: {e}") from e

    fastapi_async_engine = engine
    FastAPISessionLocal = _session_factory(engine)
    logger.info(f"Database engine ready ({_redact_url(db_url)}).")


async def _dispose_fastapi_db_resources_async() -> None:
    global fastapi_async_engine, FastAPISessionLocal
    if fastapi_async_engine is None:
        return
    await fastapi_async_engine.dispose()
    fastapi_async_engine = None
    FastAPISessionLocal = None
    logger.info("Database engine disposed.")


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    if FastAPISessionLocal is None:
        raise RuntimeError("Database sessions requested before the app lifespan started.")
    async with FastAPISessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_user_db(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[SQLAlchemyUserDatabase, None]:
    yield SQLAlchemyUserDatabase(session, User)


async def lifespan_db_manager(_app_instance, event_type: str) -> None:
    """Create and test-connect the engine on ``startup``; dispose it on ``shutdown``."""
    if event_type == "startup":
        _initialize_fastapi_db_resources_sync()
        try:
            async with fastapi_async_engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database is unreachable at startup: {e}", exc_info=True)
            await _dispose_fastapi_db_resources_async()
            raise RuntimeError(f"Database connection test failed on startup: {e}") from e
        logger.info("Database connection verified on startup.")
    elif event_type == "shutdown":
        await _dispose_fastapi_db_resources_async()


# --- Celery worker processes ---
worker_async_engine: AsyncEngine | None = None
WorkerSessionLocal: async_sessionmaker[AsyncSession] | None = None


def initialize_worker_db_resources() -> None:
    global worker_async_engine, WorkerSessionLocal
    if worker_async_engine is not None:
        return

    db_url = settings.ASYNC_SQLALCHEMY_DATABASE_URL_WORKER
    engine = _build_engine(db_url, echo=settings.DB_ECHO_WORKER or settings.DB_ECHO)
    worker_async_engine = engine
    WorkerSessionLocal = _session_factory(engine)
    logger.info(f"CELERY_WORKER: database engine ready ({_redact_url(db_url)}).")


def dispose_worker_db_resources_sync() -> None:
    global worker_async_engine, WorkerSessionLocal
    if worker_async_engine is None:
        return
    try:
        asyncio.run(worker_async_engine.dispose())
    except RuntimeError as e:
        # Raised when the process is already tearing down its loop.
        logger.warning(f"CELERY_WORKER: engine dispose skipped: {e}")
    finally:
        worker_async_engine = None
        WorkerSessionLocal = None


@contextlib.asynccontextmanager
async def get_worker_db_session() -> AsyncGenerator[AsyncSession, None]:
    if WorkerSessionLocal is None:
        raise RuntimeError("Worker database sessions requested before worker_process_init.")
    async with WorkerSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.error("CELERY_WORKER: task failed inside a DB session.", exc_info=True)
            raise
