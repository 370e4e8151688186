"""
EntityDesk configuration -- all environment variables in one place.

Read from environment at import time. Per-schema values (page size,
reveal step) fall back to these when a schema does not set its own.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


class Settings:
    """Application settings from environment variables."""

    # Remote collection
    API_URL: str = os.environ.get("ENTITYDESK_API_URL", "http://localhost:4000/api").rstrip("/")
    REQUEST_TIMEOUT: float = _float_env("ENTITYDESK_TIMEOUT", 30.0)

    # List view
    PAGE_SIZE: int = _int_env("ENTITYDESK_PAGE_SIZE", 100)
    REVEAL_STEP: int = _int_env("ENTITYDESK_REVEAL_STEP", 20)

    # Dashboard KPIs read a larger page than the list view
    KPI_PAGE_SIZE: int = _int_env("ENTITYDESK_KPI_PAGE_SIZE", 500)

    # Export
    LOW_STOCK_THRESHOLD: int = _int_env("ENTITYDESK_LOW_STOCK", 5)

    # Logging (CLI)
    LOG_LEVEL: str = os.environ.get("ENTITYDESK_LOG_LEVEL", "WARNING").upper()


# Singleton instance
settings = Settings()
