"""Application settings loaded from environment for the VideoTube backend.

This module defines the :class:`Settings` model (based on Pydantic's
``BaseSettings``) and instantiates ``settings`` which is imported across
the application to access configuration values.

Notable fields include the database connection URL, the signing secrets and
lifetimes for access/refresh tokens, Cloudinary credentials used for avatar
and cover image uploads, and cookie flags for the auth routes.
"""

from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.security import TokenSettings

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """Environment-backed application settings.

    Attributes:
        DATABASE_URL_ASYNC: Async database URL for SQLAlchemy.
        DATABASE_ECHO: Echo SQL statements to the log.

        ACCESS_TOKEN_SECRET: Signing secret for access tokens.
        ACCESS_TOKEN_EXPIRE_MINUTES: Access token lifetime in minutes.
        REFRESH_TOKEN_SECRET: Signing secret for refresh tokens.
        REFRESH_TOKEN_EXPIRE_DAYS: Refresh token lifetime in days.
        ALGORITHM: JWT signing algorithm.

        CLOUDINARY_CLOUD_NAME: Cloudinary cloud the assets are uploaded to.
        CLOUDINARY_API_KEY: Cloudinary API key.
        CLOUDINARY_API_SECRET: Cloudinary API secret used to sign uploads.
        CLOUDINARY_BASE_URL: Cloudinary upload API base URL.
        UPLOAD_TIMEOUT_SECONDS: HTTP timeout for asset uploads.
        TEMP_UPLOAD_DIRECTORY: Local directory for multipart files awaiting upload.

        COOKIE_SECURE: Set the ``Secure`` flag on token cookies.
        COOKIE_SAMESITE: ``SameSite`` policy for token cookies.
        CORS_ORIGINS: Comma-separated list of allowed origins.
        LOG_LEVEL: Log level for the application logger.
    """

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    DATABASE_URL_ASYNC: str = "sqlite+aiosqlite:///./videotube.db"
    DATABASE_ECHO: bool = False

    ACCESS_TOKEN_SECRET: str = "change-me-access-token-secret-for-local-development"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET: str = "change-me-refresh-token-secret-for-local-development"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    ALGORITHM: str = "HS256"

    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_BASE_URL: str = "https://api.cloudinary.com/v1_1"
    UPLOAD_TIMEOUT_SECONDS: float = 30.0
    TEMP_UPLOAD_DIRECTORY: str = "public/temp"

    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "lax"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    def token_settings(self) -> TokenSettings:
        """Build the token configuration handed to the session manager."""
        return TokenSettings(
            access_token_secret=self.ACCESS_TOKEN_SECRET,
            access_token_expires=timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_secret=self.REFRESH_TOKEN_SECRET,
            refresh_token_expires=timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=self.ALGORITHM,
        )

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def temp_upload_dir(self) -> Path:
        path = Path(self.TEMP_UPLOAD_DIRECTORY)
        if not path.is_absolute():
            path = BACKEND_DIR / path
        return path


settings = Settings()
