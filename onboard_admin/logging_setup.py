"""Logging for the admin service and the sync client.

Both halves log through ``onboard_admin.*`` module loggers with event-style
messages (``question_store.update.failed``, ``request.done``). One stdout
handler serves them, uvicorn shares it, and chatty libraries (httpx request
lines, SQLAlchemy engine echo) are held at WARNING. ``ONBOARD_ADMIN_LOG_LEVEL``
or the ``level`` argument sets the package level.
"""
from __future__ import annotations
import copy
import logging
import os
from logging.config import dictConfig

LOG_LEVEL_ENV = "ONBOARD_ADMIN_LOG_LEVEL"

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "WARNING", "handlers": ["console"]},
    "loggers": {
        "onboard_admin": {"level": "INFO"},
        "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
    },
}


def build_logging_config(level: str | None = None) -> dict:
    """Return the dictConfig mapping with the package level resolved."""
    config = copy.deepcopy(_DICT_CONFIG)
    chosen = (level or os.getenv(LOG_LEVEL_ENV) or "").strip().upper()
    if chosen:
        if not isinstance(logging.getLevelName(chosen), int):
            raise ValueError(f"unknown log level: {chosen!r}")
        config["loggers"]["onboard_admin"]["level"] = chosen
    return config


def configure_logging(level: str | None = None) -> None:
    """Configure logging once per process.

    Returns early when the root logger already has handlers, so pytest's
    capture and reloaders do not get duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(build_logging_config(level))
