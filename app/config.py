import os
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = os.getenv("ENV", "development")  # development, staging, production
    DEBUG: bool = ENV in ["development", "staging"]

    # Database settings
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "litex")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "litexpass")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "litex_portal")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
    )

    # Database connection pool settings (ignored for SQLite)
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))
    DB_POOL_TIMEOUT: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "3600"))

    # Auth settings (tokens are issued by the session provider, we only verify them)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecretkey")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Audit trail
    # background: writes are dispatched and never awaited by the request
    # inline: the request awaits the write (errors are still swallowed)
    AUDIT_LOG_MODE: str = os.getenv("AUDIT_LOG_MODE", "background")
    AUDIT_DRAIN_TIMEOUT_SECONDS: float = float(os.getenv("AUDIT_DRAIN_TIMEOUT_SECONDS", "5"))

    # Seeded wildcard role
    ADMIN_ROLE_NAME: str = os.getenv("ADMIN_ROLE_NAME", "Administrator")

    # Comma separated list of allowed origins
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # API specific settings
    API_PREFIX: str = "/api/v1"
    PERMISSIONS_ENDPOINT: str = "/api/v1/auth/permissions"
    APP_NAME: str = "Litex Portal"
    APP_VERSION: str = "1.0.0"

    class Config:
        case_sensitive = True
        env_file = None


settings = Settings()
