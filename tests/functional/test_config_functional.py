"""Configuration precedence and validation."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from onboard_admin.config import DEFAULT_API_URL, SyncConfig, load_config

_KEYS = (
    "ONBOARD_ADMIN_API_URL",
    "ONBOARD_ADMIN_TIMEOUT_SECONDS",
    "ONBOARD_ADMIN_AUTOSAVE_DELAY_MS",
    "ONBOARD_ADMIN_BULK_DELETE_CONCURRENCY",
)


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults(isolated):
    cfg = load_config()
    assert cfg.api.base_url == DEFAULT_API_URL
    assert cfg.api.timeout_seconds == 10
    assert cfg.sync.autosave_delay_ms == 500
    assert cfg.sync.autosave_delay_seconds == 0.5
    assert cfg.sync.bulk_delete_concurrency == 1


def test_json_then_files_then_env(isolated, monkeypatch):
    (isolated / "onboard_admin_config.json").write_text(
        json.dumps({"api": {"base_url": "http://json.example/api", "timeout_seconds": 4}, "sync": {"autosave_delay_ms": 450}}),
        encoding="utf-8",
    )
    cfg = load_config()
    assert cfg.api.base_url == "http://json.example/api"
    assert cfg.api.timeout_seconds == 4
    assert cfg.sync.autosave_delay_ms == 450

    (isolated / "config").mkdir()
    (isolated / "config" / "api.url").write_text("http://file.example/api/\n", encoding="utf-8")
    assert load_config().api.base_url == "http://file.example/api"

    monkeypatch.setenv("ONBOARD_ADMIN_API_URL", "https://env.example/api")
    monkeypatch.setenv("ONBOARD_ADMIN_BULK_DELETE_CONCURRENCY", "3")
    cfg = load_config()
    assert cfg.api.base_url == "https://env.example/api"
    assert cfg.sync.bulk_delete_concurrency == 3
    assert cfg.api.timeout_seconds == 4


@pytest.mark.parametrize(
    "key, value",
    [
        ("ONBOARD_ADMIN_API_URL", "ftp://nope"),
        ("ONBOARD_ADMIN_TIMEOUT_SECONDS", "0"),
        ("ONBOARD_ADMIN_AUTOSAVE_DELAY_MS", "900"),
        ("ONBOARD_ADMIN_BULK_DELETE_CONCURRENCY", "0"),
    ],
)
def test_invalid_values_raise(isolated, monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(PydanticValidationError):
        load_config()


def test_autosave_delay_window():
    assert SyncConfig(autosave_delay_ms=400).autosave_delay_seconds == 0.4
    with pytest.raises(PydanticValidationError):
        SyncConfig(autosave_delay_ms=399)


def test_logging_level_from_argument_or_env(monkeypatch):
    from onboard_admin.logging_setup import LOG_LEVEL_ENV, build_logging_config

    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    assert build_logging_config()["loggers"]["onboard_admin"]["level"] == "INFO"
    assert build_logging_config("debug")["loggers"]["onboard_admin"]["level"] == "DEBUG"
    monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
    config = build_logging_config()
    assert config["loggers"]["onboard_admin"]["level"] == "WARNING"
    assert config["loggers"]["httpx"]["level"] == "WARNING"
    with pytest.raises(ValueError):
        build_logging_config("chatty")
