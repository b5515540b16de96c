"""Application configuration."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

SQLITE_DRIVER = "sqlite+aiosqlite"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_path: Path = Path("data/nutrition_helper.db")
    database_url: str | None = None
    database_pool_size: int = Field(default=5, ge=1)
    database_echo: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def resolved_database_url(self) -> str:
        """Return the explicit database URL or one built from the file path."""
        if self.database_url:
            return self.database_url
        return f"{SQLITE_DRIVER}:///{self.database_path}"
