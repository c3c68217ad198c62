"""Application configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    KEY_PREFIX: str = "wardrobe"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Design codes
    # Saved codes need at least one random character after the prefix
    DESIGN_CODE_LENGTH: int = Field(default=8, ge=2, le=32)
    DESIGN_CODE_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    PUBLIC_BASE_URL: str = "https://wardrobe-planner.flexistorage.com.au/"

    # Email (SMTP). Credentials are server-only.
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USE_SSL: bool = False  # False = STARTTLS
    SMTP_TIMEOUT_SECONDS: float = 30.0
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    EMAIL_FROM: str = ""
    ADMIN_EMAIL: str = ""

    # Rate Limiting (email endpoints)
    EMAIL_RATE_LIMIT_MAX: int = Field(default=20, ge=1)  # per client IP
    EMAIL_RATE_LIMIT_PER_RECIPIENT: int = Field(default=5, ge=1)
    EMAIL_RATE_LIMIT_WINDOW_SECONDS: int = Field(default=3600, ge=1)

    # Catalog
    CATALOG_SEED_DIR: str = ""
    BASE_WARDROBE_ITEM_NUMBER: str = "2583987"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def email_configured(self) -> bool:
        return bool(self.EMAIL_USER and self.EMAIL_PASS)


@lru_cache
def get_settings() -> Settings:
    return Settings()
