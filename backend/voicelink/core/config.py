# /backend/voicelink/core/config.py

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import (
    AliasChoices,
    EmailStr,
    Field,
    RedisDsn,
    computed_field,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False
    )

    # --- Environment & Debug ---
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development", validation_alias="APP_ENV"
    )
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG_MODE", "DEBUG"))
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
    )

    # --- Server Configuration ---
    SERVER_HOST: str = Field(default="0.0.0.0", validation_alias="SERVER_HOST")
    SERVER_PORT: int = Field(default=5000, validation_alias="SERVER_PORT")
    ROOT_PATH: str = Field(
        default="", description="Root path for the application if served under a subpath."
    )
    USE_HTTPS: bool = Field(default=False, validation_alias="USE_HTTPS")
    TRUSTED_PROXY_HOPS: int = Field(
        default=0,
        ge=0,
        description=(
            "Reverse proxies in front of the app that append to X-Forwarded-For. "
            "0 means the socket peer is the client."
        ),
        validation_alias="TRUSTED_PROXY_HOPS",
    )

    # --- Core Application Settings ---
    APP_NAME: str = Field(default="VoiceLink", validation_alias="APP_NAME")
    APP_VERSION: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    APP_DESCRIPTION: str = Field(
        default="Voice translation API with daily usage limits for guests.",
        validation_alias="APP_DESCRIPTION",
    )
    API_PREFIX: str = Field(default="/api", validation_alias="API_PREFIX")

    # --- JWT & Authentication Settings ---
    SECRET_KEY: str = Field(validation_alias=AliasChoices("SESSION_SECRET", "SECRET_KEY"))
    ALGORITHM: str = Field(default="HS256", validation_alias="ALGORITHM")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=30, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )
    SESSION_EXPIRE_DAYS: int = Field(default=7, validation_alias="SESSION_EXPIRE_DAYS")
    AUTH_COOKIE_NAME: str = Field(default="vlSession", validation_alias="AUTH_COOKIE_NAME")
    COOKIE_SECURE: bool = Field(default=True, validation_alias="COOKIE_SECURE")
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = Field(
        default="lax", validation_alias="COOKIE_SAMESITE"
    )

    # --- Guest Sessions & Usage Limits ---
    GUEST_SESSION_COOKIE_NAME: str = Field(
        default="vlGuestSession", validation_alias="GUEST_SESSION_COOKIE_NAME"
    )
    GUEST_SESSION_TTL_DAYS: int = Field(default=7, validation_alias="GUEST_SESSION_TTL_DAYS")
    GUEST_DAILY_TRANSLATION_LIMIT: int = Field(
        default=3, ge=0, validation_alias="GUEST_DAILY_TRANSLATION_LIMIT"
    )
    USAGE_STORE_BACKEND: Literal["database", "memory"] = Field(
        default="database", validation_alias="USAGE_STORE_BACKEND"
    )
    USAGE_RETENTION_DAYS: int = Field(default=90, validation_alias="USAGE_RETENTION_DAYS")

    # --- Audio Uploads ---
    UPLOAD_DIR: Path = Field(default=Path("public/uploads"), validation_alias="UPLOAD_DIR")
    MAX_AUDIO_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024, validation_alias="MAX_AUDIO_UPLOAD_BYTES"
    )
    AUDIO_RETENTION_DAYS: int = Field(default=30, validation_alias="AUDIO_RETENTION_DAYS")

    # --- Initial Superuser Settings ---
    FIRST_SUPERUSER_EMAIL: EmailStr | None = Field(
        default=None, validation_alias="FIRST_SUPERUSER_EMAIL"
    )
    FIRST_SUPERUSER_PASSWORD: str | None = Field(
        default=None, validation_alias="FIRST_SUPERUSER_PASSWORD"
    )

    # --- External AI Services ---
    GEMINI_API_KEY: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    GEMINI_API_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias="GEMINI_API_BASE_URL",
    )
    GEMINI_DEFAULT_MODEL: str = Field(
        default="gemini-2.5-flash", validation_alias="GEMINI_DEFAULT_MODEL"
    )
    ELEVENLABS_API_KEY: str | None = Field(default=None, validation_alias="ELEVENLABS_API_KEY")
    ELEVENLABS_API_BASE_URL: str = Field(
        default="https://api.elevenlabs.io/v1", validation_alias="ELEVENLABS_API_BASE_URL"
    )
    ELEVENLABS_TTS_MODEL: str = Field(default="eleven_v3", validation_alias="ELEVENLABS_TTS_MODEL")
    ELEVENLABS_OUTPUT_FORMAT: str = Field(
        default="mp3_44100_128", validation_alias="ELEVENLABS_OUTPUT_FORMAT"
    )
    EXTERNAL_API_TIMEOUT_SECONDS: float = Field(
        default=60.0, validation_alias="EXTERNAL_API_TIMEOUT_SECONDS"
    )

    # --- Database Settings ---
    PRIMARY_DATABASE_URL_ENV: str | None = Field(default=None, validation_alias="DATABASE_URL")
    ASYNC_SQLALCHEMY_DATABASE_URL_WORKER_ENV: str | None = Field(
        default=None, validation_alias="ASYNC_SQLALCHEMY_DATABASE_URL_WORKER"
    )
    POSTGRES_SERVER: str = Field(default="db", validation_alias="POSTGRES_SERVER")
    POSTGRES_USER: str = Field(default="voicelink", validation_alias="POSTGRES_USER")
    POSTGRES_PASSWORD: str = Field(default="voicelink", validation_alias="POSTGRES_PASSWORD")
    POSTGRES_DB: str = Field(default="voicelink", validation_alias="POSTGRES_DB")
    POSTGRES_PORT: int = Field(default=5432, validation_alias="POSTGRES_PORT")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")
    DB_ECHO_WORKER: bool = Field(default=False, validation_alias="DB_ECHO_WORKER")

    # --- Celery & Redis Settings ---
    REDIS_HOST: str = Field(default="redis", validation_alias="REDIS_HOST")
    REDIS_PORT: int = Field(default=6379, validation_alias="REDIS_PORT")
    CELERY_BROKER_URL_ENV: RedisDsn | None = Field(
        default=None, validation_alias="CELERY_BROKER_URL"
    )
    CELERY_RESULT_BACKEND_ENV: RedisDsn | None = Field(
        default=None, validation_alias="CELERY_RESULT_BACKEND"
    )
    TIMEZONE: str = Field(default="UTC", validation_alias="CELERY_TIMEZONE")
    CELERY_ACKS_LATE: bool = Field(default=True, validation_alias="CELERY_ACKS_LATE")
    CELERY_RESULT_EXPIRES: int = Field(default=3600, validation_alias="CELERY_RESULT_EXPIRES")

    # --- CORS ---
    # JSON list or comma separated string; parsed into BACKEND_CORS_ORIGINS.
    cors_origins_raw: str | None = Field(
        default='["http://localhost:5173","http://localhost:5000"]',
        validation_alias=AliasChoices("BACKEND_CORS_ORIGINS", "BACKEND_CORS_ORIGINS_ENV"),
    )

    _cors_origins: list[str] = []

    @staticmethod
    def _split_origins(raw: str | None) -> list[str]:
        if not raw or not raw.strip():
            return []
        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError:
            loaded = raw
        items = loaded if isinstance(loaded, list) else str(loaded).split(",")
        origins = [str(item).strip().rstrip("/") for item in items if str(item).strip()]
        if not origins:
            logger.warning(f"BACKEND_CORS_ORIGINS ('{raw}') contained no usable origins.")
        return origins

    @model_validator(mode="after")
    def _apply_derived_settings(self) -> "Settings":
        self._cors_origins = self._split_origins(self.cors_origins_raw)

        if self.DEBUG:
            # Local debugging: verbose logs and SQL, cookies over plain http.
            self.LOG_LEVEL = "DEBUG"
            self.DB_ECHO = True
            self.COOKIE_SECURE = False
        elif self.ENVIRONMENT != "development" and not self.COOKIE_SECURE:
            if self.USE_HTTPS:
                self.COOKIE_SECURE = True
            else:
                logger.warning(
                    f"COOKIE_SECURE is off in {self.ENVIRONMENT}; session cookies "
                    "will be sent over plain http."
                )

        if self.ROOT_PATH and self.ROOT_PATH != "/":
            self.ROOT_PATH = self.ROOT_PATH.strip("/")
        return self

    @property
    def BACKEND_CORS_ORIGINS(self) -> list[str]:
        return self._cors_origins

    @property
    def AUDIO_UPLOAD_DIR(self) -> Path:
        return self.UPLOAD_DIR / "audio"

    def _async_dsn(self, dsn: str | None) -> str:
        """Point a DSN at its async driver; SQLite is accepted for local runs."""
        if not dsn:
            return (
                f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )
        scheme, sep, rest = dsn.partition("://")
        if not sep:
            raise ValueError(f"DATABASE_URL has no scheme: {dsn}")
        if scheme.startswith("sqlite"):
            return f"sqlite+aiosqlite://{rest}"
        if scheme in ("postgres", "postgresql", "postgresql+psycopg2", "postgresql+asyncpg"):
            return f"postgresql+asyncpg://{rest}"
        raise ValueError(f"Unsupported database scheme '{scheme}' in DATABASE_URL.")

    @computed_field(repr=False)
    @property
    def ASYNC_SQLALCHEMY_DATABASE_URL(self) -> str:
        return self._async_dsn(self.PRIMARY_DATABASE_URL_ENV)

    @computed_field(repr=False)
    @property
    def ASYNC_SQLALCHEMY_DATABASE_URL_WORKER(self) -> str:
        return self._async_dsn(
            self.ASYNC_SQLALCHEMY_DATABASE_URL_WORKER_ENV or self.PRIMARY_DATABASE_URL_ENV
        )

    def _redis_db_url(self, db_index: int) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{db_index}"

    @property
    def CELERY_BROKER_URL(self) -> str:
        if self.CELERY_BROKER_URL_ENV:
            return str(self.CELERY_BROKER_URL_ENV)
        return self._redis_db_url(0)

    @property
    def CELERY_RESULT_BACKEND(self) -> str:
        if self.CELERY_RESULT_BACKEND_ENV:
            return str(self.CELERY_RESULT_BACKEND_ENV)
        return self._redis_db_url(1)


settings = Settings()
