from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text as sql_text
from starlette.exceptions import HTTPException as StarletteHTTPException

from onboard_admin.config import AppConfig, load_config
from onboard_admin.db.base import dispose_engine, get_engine
from onboard_admin.db.migrations_runner import apply_migrations
from onboard_admin.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from onboard_admin.http.request_id import RequestIdMiddleware
from onboard_admin.logging_setup import configure_logging
from onboard_admin.routes import api_router

logger = logging.getLogger(__name__)


def _auto_apply_migrations() -> bool:
    return os.getenv("AUTO_APPLY_MIGRATIONS", "true").strip().lower() in {"1", "true", "yes", "on"}


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the admin API: problem+json handlers, routers under ``/api`` and ``/health``."""
    configure_logging()
    cfg = config or load_config()
    engine = get_engine(cfg.database.dsn)

    app = FastAPI(title="Onboarding Admin")
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)
    # The admin UI is served from a different origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )

    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not _auto_apply_migrations():
            logger.info("startup.migrations.skipped reason=AUTO_APPLY_MIGRATIONS")
            return
        try:
            applied = apply_migrations(engine)
        except Exception:
            logger.error("startup.migrations.failed", exc_info=True)
            raise
        logger.info("startup.migrations.done applied=%s", applied)

    @app.on_event("shutdown")
    def _dispose_engine() -> None:
        dispose_engine()

    @app.get("/health")
    def health() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1"))
        except Exception as exc:
            logger.error("health.db.failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(exc)}
        return {"status": "ok", "db": True}

    app.include_router(api_router, prefix="/api")
    return app


__all__ = ["create_app"]
