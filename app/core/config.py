"""
Application configuration.

Values come from the process environment, then ``.env.{ENVIRONMENT}``, then
``.env``. Production refuses to start without real provider keys and a
database URL:
- DATABASE_URL
- THESPORTSDB_API_KEY (live events and upcoming-match discovery)
- CRICAPI_API_KEY (cricket live data, when cricket is polled)
"""
import os
import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent

DEFAULT_DATABASE_URL = f"sqlite:///{PROJECT_ROOT / 'sports_news.db'}"
PUBLIC_SPORTSDB_KEY = "3"

logger = logging.getLogger(__name__)


def _env_files() -> tuple:
    # Later files win, so the environment-specific file overrides .env
    environment = os.getenv("ENVIRONMENT", "development")
    return (PROJECT_ROOT / ".env", PROJECT_ROOT / f".env.{environment}")


class Settings(BaseSettings):
    """Settings for the API process and the live sync loop."""

    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    APP_NAME: str = "Sports News Live Scores API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Match Record Store
    DATABASE_URL: str = DEFAULT_DATABASE_URL
    SQL_ECHO: bool = False

    RATE_LIMIT_ENABLED: bool = True

    # TheSportsDB: football, basketball, tennis live events + discovery
    THESPORTSDB_BASE_URL: str = "https://www.thesportsdb.com/api/v1/json"
    THESPORTSDB_API_KEY: str = PUBLIC_SPORTSDB_KEY

    # CricAPI: cricket live data
    CRICAPI_BASE_URL: str = "https://api.cricapi.com/v1"
    CRICAPI_API_KEY: str = ""

    PROVIDER_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Live match synchronization
    SCHEDULER_ENABLED: bool = True
    LIVE_SYNC_INTERVAL_SECONDS: int = Field(default=30, gt=0)
    DISCOVERY_INTERVAL_SECONDS: int = Field(default=3600, gt=0)
    LIVE_SYNC_CONCURRENCY: int = Field(default=5, ge=1)
    DISCOVERY_SPORTS_STR: str = "football,cricket,basketball,tennis"
    DISCOVERY_ON_STARTUP: bool = True

    # Comma-separated, e.g. "https://news.example.com,https://m.news.example.com"
    CORS_ORIGINS_STR: str = ""

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Allowed browser origins; localhost:3000 outside production."""
        origins = [o.strip() for o in self.CORS_ORIGINS_STR.split(",") if o.strip()]
        if self.is_production():
            if "*" in origins:
                logger.warning("Wildcard CORS origin ignored in production")
                return []
            return origins
        return origins or ["http://localhost:3000", "http://127.0.0.1:3000"]

    @property
    def DISCOVERY_SPORTS(self) -> list[str]:
        """Sports polled by upcoming-match discovery, in configured order."""
        return [s.strip().lower() for s in self.DISCOVERY_SPORTS_STR.split(",") if s.strip()]

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def validate_required_secrets(self) -> list[str]:
        """
        Names of secrets production cannot run without.

        Returns:
            Missing setting names (always empty outside production)
        """
        if not self.is_production():
            return []

        missing = []
        if self.DATABASE_URL == DEFAULT_DATABASE_URL:
            missing.append("DATABASE_URL")
        # The public key is throttled to a handful of calls per minute
        if self.THESPORTSDB_API_KEY in ("", PUBLIC_SPORTSDB_KEY):
            missing.append("THESPORTSDB_API_KEY")
        if "cricket" in self.DISCOVERY_SPORTS and not self.CRICAPI_API_KEY:
            missing.append("CRICAPI_API_KEY")
        return missing


settings = Settings()

missing_secrets = settings.validate_required_secrets()
if missing_secrets:
    raise ValueError(
        f"Cannot start in production with missing secrets: {', '.join(missing_secrets)}"
    )
