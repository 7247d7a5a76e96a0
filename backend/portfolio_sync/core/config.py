"""Application configuration."""

import os
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "PortfolioSync"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Secure default: disabled
    API_V1_PREFIX: str = "/api/v1"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Security - bearer tokens are issued by the identity service with this shared key
    SECRET_KEY: str  # Required - no default
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Database - Credentials must come from environment
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "portfolio_sync"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "portfolio_sync"

    # Database pool configuration
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_RECYCLE: int = 3600

    # Sync
    IMPORT_MAX_ITEMS: int = 5000
    DEFAULT_PORTFOLIO_COLOR: str = "#00E676"

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Ensure SECRET_KEY is secure."""
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters")
        if v in ["your-secret-key-change-in-production", "changeme", "secret"]:
            raise ValueError("SECRET_KEY must not be a default/weak value")
        return v

    @property
    def DATABASE_URL(self) -> str:
        """Build async database URL. Uses DATABASE_URL env var if set."""
        external = os.environ.get("DATABASE_URL", "")
        if external:
            return external.replace("postgresql://", "postgresql+asyncpg://")
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Build sync database URL for Alembic."""
        external = os.environ.get("DATABASE_URL", "")
        if external:
            return external.replace("postgresql+asyncpg://", "postgresql://")
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    @property
    def REDIS_URL(self) -> str:
        """Build Redis URL. Uses REDIS_URL env var if set."""
        external = os.environ.get("REDIS_URL", "")
        if external:
            return external
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"

    # CORS - Restricted methods and headers
    # Override with comma-separated env var: CORS_ORIGINS=https://mysite.com,https://www.mysite.com
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://127.0.0.1:3000"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    CORS_ALLOWED_METHODS: List[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    CORS_ALLOWED_HEADERS: List[str] = [
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
    ]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = ""

    @property
    def rate_limit_storage(self) -> str:
        """Limiter backend; shares Redis unless overridden (e.g. memory:// in tests)."""
        return self.RATE_LIMIT_STORAGE_URI or self.REDIS_URL

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
