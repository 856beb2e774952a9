"""
NearMatch — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the NearMatch discovery engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database – Cloud SQL via Unix socket or plain URL
    # ------------------------------------------------------------------ #
    DATABASE_URL: str
    DB_USER: str = "nearmatch_user"
    DB_PASSWORD: str = ""
    DB_NAME: str = "nearmatch"
    CLOUD_SQL_INSTANCE_CONNECTION: str = ""
    CLOUD_SQL_USE_UNIX_SOCKET: bool = False

    # ------------------------------------------------------------------ #
    # Profile store
    # ------------------------------------------------------------------ #
    STORE_BACKEND: str = "sql"  # sql / memory
    STORE_TIMEOUT_SECONDS: float = 5.0

    # ------------------------------------------------------------------ #
    # Discovery
    # ------------------------------------------------------------------ #
    DEFAULT_SEARCH_RADIUS_KM: float = 50.0
    MAX_SEARCH_RADIUS_KM: float = 100.0  # admin-configured ceiling
    MIN_AGE: int = 18
    MAX_AGE: int = 100
    TEMP_SKIP_COOLDOWN_HOURS: float = 3.0
    ONLINE_WINDOW_MINUTES: float = 5.0

    # ------------------------------------------------------------------ #
    # Boost
    # ------------------------------------------------------------------ #
    BOOST_DURATION_MINUTES: int = 15
    MAX_BOOST_DURATION_MINUTES: int = 1440  # one day

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("STORE_BACKEND")
    @classmethod
    def _backend_must_be_known(cls, v: str) -> str:
        if v not in ("sql", "memory"):
            raise ValueError(f"STORE_BACKEND must be 'sql' or 'memory', got {v!r}")
        return v

    @field_validator(
        "STORE_TIMEOUT_SECONDS",
        "DEFAULT_SEARCH_RADIUS_KM",
        "MAX_SEARCH_RADIUS_KM",
        "TEMP_SKIP_COOLDOWN_HOURS",
        "ONLINE_WINDOW_MINUTES",
        "BOOST_DURATION_MINUTES",
        "MAX_BOOST_DURATION_MINUTES",
    )
    @classmethod
    def _must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def _bounds_must_be_consistent(self) -> "Settings":
        if self.MIN_AGE > self.MAX_AGE:
            raise ValueError(
                f"MIN_AGE ({self.MIN_AGE}) must not exceed MAX_AGE ({self.MAX_AGE})"
            )
        if self.DEFAULT_SEARCH_RADIUS_KM > self.MAX_SEARCH_RADIUS_KM:
            raise ValueError(
                "DEFAULT_SEARCH_RADIUS_KM must not exceed MAX_SEARCH_RADIUS_KM"
            )
        if self.BOOST_DURATION_MINUTES > self.MAX_BOOST_DURATION_MINUTES:
            raise ValueError(
                "BOOST_DURATION_MINUTES must not exceed MAX_BOOST_DURATION_MINUTES"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from nearmatch.config import get_settings
        settings = get_settings()
    """
    return Settings()  # type: ignore[call-arg]
