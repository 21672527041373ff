"""
Mailcraft configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


def _bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings from environment variables."""

    # Database (empty selects in-memory storage)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", "20"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Export
    DEFAULT_ESP: str = os.environ.get("DEFAULT_ESP", "")

    # Seed the in-memory store with the built-in starter templates
    SEED_STARTER_TEMPLATES: bool = _bool("SEED_STARTER_TEMPLATES", "true")

    @property
    def USE_POSTGRES(self) -> bool:
        return bool(self.DATABASE_URL)


# Singleton instance
settings = Settings()
