"""Configuration settings for the application."""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "UnifyPay API"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    database_path: str = "unifypay.db"

    # Comma-separated list, "*" allows any origin
    allowed_origins: str = "*"

    # Embedded file uploads
    max_attachment_bytes: int = 5 * 1024 * 1024
    allowed_attachment_types: List[str] = [
        "image/jpeg",
        "image/png",
        "image/jpg",
        "application/pdf",
        "text/plain",
    ]

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
