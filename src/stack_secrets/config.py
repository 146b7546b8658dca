"""Configuration for stack-secrets."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.logging import setup_structured_logging

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Library settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    stack_name: str = Field(
        default="",
        description="Deployment stack that scopes every secret lookup",
        alias="STACK_NAME",
    )
    gcp_project_id: str | None = Field(
        None,
        description="GCP project holding the secrets, defaults to the credentials' project",
        alias="GCP_PROJECT_ID",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
        alias="LOG_LEVEL",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get library settings (cached)."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Install structured logging at the configured level."""
    settings = settings or get_settings()
    setup_structured_logging(log_level=settings.log_level)
