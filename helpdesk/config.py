"""Helpdesk — Configuration via pydantic-settings."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./helpdesk.db"

    # Record store
    STORE_BACKEND: str = "sqlalchemy"  # "sqlalchemy" or "memory"
    STORE_NAMESPACE: str = "support_system"

    # Security
    PASSWORD_SCHEMES: list[str] = ["pbkdf2_sha256"]

    # Timezone
    TIMEZONE: str = "America/Sao_Paulo"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
