"""SQLAlchemy engine for the question and response store.

The service runs on SQLite locally and in CI and on any SQLAlchemy-supported
database in production. No declarative models are defined here; this module
only manages connection lifecycle.
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from onboard_admin.config import DEFAULT_DSN

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return os.getenv("DATABASE_URL") or DEFAULT_DSN


# Module-level cached Engine so repositories share one pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    Without ``url`` the current Engine is reused, falling back to
    ``DATABASE_URL`` when none exists yet. A new Engine is built when an
    explicit URL differs from the current one. For SQLite in-memory
    URLs a StaticPool keeps the single connection (and therefore the data)
    alive across requests and threads.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _ENGINE_URL or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db.engine.created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None
