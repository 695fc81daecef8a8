from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Database
    DATABASE_URL: str = "sqlite:///./access_engine.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # JWT Authentication (shared with the auth provider)
    SECRET_KEY: str

    # Application
    APP_NAME: str = "Access Engine API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = ""
    CORS_ALLOW_CREDENTIALS: bool = True

    # Permission cache
    PERMISSION_CACHE_TTL_SECONDS: int = 300
    PERMISSION_CACHE_STRIPES: int = 16

    # Navigation cache (entries are shared by users with identical permission sets)
    NAVIGATION_CACHE_MAX_ENTRIES: int = 1024

    # Audit log
    AUDIT_LOG_MAX_ENTRIES: int = 10_000
    AUDIT_LOG_CAP_SCOPE: Literal["global", "tenant"] = "global"

    # Navigation trail (visits kept per user and tenant, recents returned)
    NAV_TRAIL_MAX_ENTRIES: int = 500
    NAV_RECENTS_LIMIT: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from comma-separated string"""
        if not self.CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
