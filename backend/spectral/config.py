"""Application configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security
    SECRET_KEY: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    OAUTH_STATE_EXPIRE_MINUTES: int = 10
    # Google may grant scopes in a different order or form than requested
    OAUTH_RELAX_TOKEN_SCOPE: bool = True

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Google OAuth (YouTube linking + Drive storage)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/api/accounts/oauth/callback"
    GOOGLE_REFRESH_TOKEN: str = ""

    # Google Drive
    DRIVE_ROOT_FOLDER_NAME: str = "spectral"
    DRIVE_UPLOAD_CHUNK_SIZE: int = 1024 * 1024  # 1MB chunks

    # YouTube publishing
    YOUTUBE_CATEGORY_ID: str = "22"
    YOUTUBE_DEFAULT_PRIVACY: str = "private"

    # Uploads
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024 * 1024  # 2GB

    # API
    API_BASE_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"

    # APScheduler
    SCHEDULER_ENABLED: bool = True
    SESSION_CLEANUP_INTERVAL_MINUTES: int = 60

    # Error tracking
    SENTRY_DSN: str = ""
    APP_VERSION: str = "1.0.0"

    # Application
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS comma-separated string into list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


# Global settings instance
settings = Settings()
