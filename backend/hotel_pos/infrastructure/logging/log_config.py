"""Centralized logging configuration.

Applies per-category log levels from Settings so that chatty loggers
(SQL statements, Upstash REST round-trips) can be silenced without hiding
index-drift warnings from the storage layer.

Usage:
    from hotel_pos.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once at startup (FastAPI lifespan or CLI entry)
"""

import logging
import sys

from hotel_pos.config import Settings, get_settings


# ── Logger-name → Settings-field mapping ────────────────────────────

_CATEGORY_MAP: dict[str, list[str]] = {
    "log_level_storage": [
        "hotel_pos.application.services",
        "hotel_pos.infrastructure.kv",
    ],
    "log_level_sql": [
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "aiosqlite",
        "asyncpg",
    ],
    "log_level_http": [
        "httpx",
        "httpcore",
    ],
    "log_level_uvicorn": [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
    ],
}


def setup_logging(settings: Settings | None = None, level_override: str | None = None) -> None:
    """Configure Python logging levels from application settings.

    ``level_override`` replaces the root and storage levels (the CLI's
    ``-v`` flag uses it).
    """
    settings = settings or get_settings()
    root_level = _parse_level(level_override or settings.log_level)

    root = logging.getLogger()
    root.setLevel(root_level)

    # uvicorn installs its own handler; tests and the CLI do not.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(levelname)-8s %(name)s — %(message)s",
            )
        )
        root.addHandler(handler)

    for settings_field, logger_names in _CATEGORY_MAP.items():
        raw_level: str = getattr(settings, settings_field, "INFO")
        if level_override and settings_field == "log_level_storage":
            raw_level = level_override
        level = _parse_level(raw_level)

        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured — root=%s, storage=%s, sql=%s, http=%s, uvicorn=%s",
        level_override or settings.log_level,
        level_override or settings.log_level_storage,
        settings.log_level_sql,
        settings.log_level_http,
        settings.log_level_uvicorn,
    )


def _parse_level(raw: str) -> int:
    """Convert a level name string to a logging constant, defaulting to INFO."""
    numeric = getattr(logging, str(raw).upper(), None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO
