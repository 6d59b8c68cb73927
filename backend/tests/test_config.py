"""Tests for application settings and logging setup.

Covers Settings defaults, environment overrides and the setup_logging
helper in core.logger.
"""

from __future__ import annotations

import logging

import pytest

from core import config
from core import logger as core_logger


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that Settings has expected default values."""
    monkeypatch.delenv("STORE_BACKEND", raising=False)
    monkeypatch.delenv("LOCAL_STORE_DIR", raising=False)
    settings = config.Settings(_env_file=None)
    assert settings.STORE_BACKEND is None
    assert settings.LOCAL_STORE_DIR is None
    assert settings.DEFAULT_PAGE_LIMIT == 15
    assert settings.DATABASE_POOL_SIZE == 10


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that environment variables override defaults, case-insensitively."""
    monkeypatch.setenv("store_backend", "postgresql")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/registry")
    monkeypatch.setenv("DEFAULT_PAGE_LIMIT", "30")
    settings = config.Settings(_env_file=None)
    assert settings.STORE_BACKEND == "postgresql"
    assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/registry"
    assert settings.DEFAULT_PAGE_LIMIT == 30


def test_get_settings_returns_module_instance() -> None:
    """Test that get_settings returns the shared settings object."""
    assert config.get_settings() is config.settings


def test_setup_logging_uses_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that setup_logging passes the requested level to basicConfig."""
    captured: dict[str, object] = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: captured.update(kw))

    core_logger.setup_logging("debug")

    assert captured["level"] == logging.DEBUG
    assert captured["format"] == core_logger.LOG_FORMAT


def test_setup_logging_unknown_level_defaults_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that an unknown level name falls back to INFO."""
    captured: dict[str, object] = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: captured.update(kw))

    core_logger.setup_logging("loud")

    assert captured["level"] == logging.INFO
