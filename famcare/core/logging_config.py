"""
Logging setup for the API process and the command line tools.

Handlers live on the root logger only. The ``famcare`` namespace gets the
configured level, and SQLAlchemy's engine logger is pinned to WARNING so
statement echo never floods the import logs.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

APP_LOGGER = "famcare"
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

_configured_level: Optional[str] = None


def build_logging_config(level: str) -> Dict[str, Any]:
    """dictConfig payload for ``level``; exposed so tools can extend it before applying."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": LOG_FORMAT, "datefmt": "%H:%M:%S"}},
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "formatter": "plain"},
        },
        "loggers": {
            APP_LOGGER: {"level": level},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> str:
    """
    Install the logging configuration once per process.

    Later calls are no-ops unless ``force`` is set. Returns the level in effect.
    """
    global _configured_level

    if _configured_level is not None and not force:
        return _configured_level

    resolved = (level or "INFO").upper()
    dictConfig(build_logging_config(resolved))
    _configured_level = resolved
    logging.getLogger(__name__).debug("Logging configured at %s", resolved)
    return resolved
