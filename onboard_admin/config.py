"""Configuration utilities for the onboarding admin.

This module loads application configuration with the following rules:
- Primary source: `onboard_admin_config.json` at the project root.
- Overrides: environment variables (optionally from a local `.env`), then
  optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("onboard_admin_config.json")
logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"
DEFAULT_DSN = "sqlite+pysqlite:///:memory:"


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class ApiConfig(BaseModel):
    base_url: str
    timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip().startswith(("http://", "https://")):
            raise ValueError("api.base_url must be an http(s) URL")
        return v.strip().rstrip("/")


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class SyncConfig(BaseModel):
    # Autosave flushes after this much input inactivity
    autosave_delay_ms: int = Field(default=500, ge=400, le=500)
    bulk_delete_concurrency: int = Field(default=1, ge=1)

    @property
    def autosave_delay_seconds(self) -> float:
        return self.autosave_delay_ms / 1000.0


class AppConfig(BaseModel):
    api: ApiConfig
    database: DatabaseConfig
    sync: SyncConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) onboard_admin_config.json at project root (primary base)
    4) Safe defaults for development
    """

    load_dotenv(override=False)
    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Remote API
    base_url = _env("ONBOARD_ADMIN_API_URL") or _read_config_file("api.url") or _base("api.base_url") or DEFAULT_API_URL
    timeout_text = _env("ONBOARD_ADMIN_TIMEOUT_SECONDS") or _read_config_file("api.timeout_seconds") or _base("api.timeout_seconds", "10")

    # Backing store
    dsn = _env("DATABASE_URL") or _read_config_file("database.url") or _base("database.dsn") or DEFAULT_DSN

    # Sync engine tuning
    delay_text = _env("ONBOARD_ADMIN_AUTOSAVE_DELAY_MS") or _read_config_file("sync.autosave_delay_ms") or _base("sync.autosave_delay_ms", "500")
    concurrency_text = (
        _env("ONBOARD_ADMIN_BULK_DELETE_CONCURRENCY")
        or _read_config_file("sync.bulk_delete_concurrency")
        or _base("sync.bulk_delete_concurrency", "1")
    )

    try:
        cfg = AppConfig(
            api=ApiConfig(base_url=base_url, timeout_seconds=str(timeout_text).strip()),
            database=DatabaseConfig(dsn=dsn),
            sync=SyncConfig(
                autosave_delay_ms=str(delay_text).strip(),
                bulk_delete_concurrency=str(concurrency_text).strip(),
            ),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "ApiConfig",
    "DatabaseConfig",
    "SyncConfig",
    "load_config",
]
