"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.

Regulatory constants (pass thresholds, validity periods, element weights) are
fixed by the COR program and live in cor_engine.services.requirements, not here.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "COR Audit Engine"
    APP_ENV: str = Field(default="local")
    DEBUG: bool = Field(default=False)

    # Database - full connection string; SQLite file when unset
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Database connection URL",
    )

    @property
    def sqlalchemy_database_uri(self) -> str:
        """Database URI: DATABASE_URL when set, local SQLite file otherwise."""
        if self.DATABASE_URL:
            # Hosted Postgres providers still hand out postgres:// URLs
            if self.DATABASE_URL.startswith("postgres://"):
                return self.DATABASE_URL.replace("postgres://", "postgresql+psycopg2://", 1)
            return self.DATABASE_URL
        return "sqlite:///./cor_engine.db"

    # CORS settings
    CORS_ORIGINS: Union[str, List[str]] = Field(
        default='["http://localhost:3000", "http://localhost:5173"]',
    )

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not JSON, treat as comma-separated
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_DIR: str = Field(default="logs", description="Directory for the rotating log file")

    # Engine tuning
    AUDIT_NUMBER_MAX_RETRIES: int = Field(
        default=5,
        ge=1,
        description="Attempts at the conditional write that allocates an audit number",
    )
    DEFAULT_LIST_LIMIT: int = Field(default=50, ge=1, le=500)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
