"""Typed smoke tests for the settings loader.

These tests verify four guarantees:
1) Importing the module-level `settings` yields a `Settings` instance.
2) Environment variables override defaults after clearing the loader cache.
3) `get_logger()` respects the configured LOG_LEVEL when constructing loggers.
4) `TraceLayout.from_settings()` places every artifact under the configured
   directories.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from archtrace.core.layout import TraceLayout
from archtrace.core.settings import (
    Settings,
    get_logger,
    load_settings,
    settings,
)


def test_settings_instance_type() -> None:
    """`settings` should be an instance of the typed `Settings` model."""
    assert isinstance(settings, Settings)


def test_env_overrides_with_cache_clear(monkeypatch: Any) -> None:
    """Changing env vars should take effect after `load_settings.cache_clear()`."""
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ARCHTRACE_TRACES_DIR", "architecture")

    load_settings.cache_clear()
    s = load_settings()

    assert s.log_level == "DEBUG"
    assert s.traces_dir == "architecture"
    assert s.coordination_dir == ".archtrace"


def test_get_logger_respects_level(monkeypatch: Any) -> None:
    """We set LOG_LEVEL=ERROR and expect the created logger's level to be logging.ERROR."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    load_settings.cache_clear()
    _ = load_settings()

    logger = get_logger("archtrace.tests.settings")

    assert logger.level == logging.ERROR
    assert logger.handlers, "Expected at least one StreamHandler to be attached."


def test_layout_from_settings(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.setenv("ARCHTRACE_REPO_ROOT", str(tmp_path))
    monkeypatch.setenv("ARCHTRACE_TRACES_DIR", "arch")
    monkeypatch.setenv("ARCHTRACE_COORDINATION_DIR", ".state")
    load_settings.cache_clear()

    layout = TraceLayout.from_settings()
    root = tmp_path.resolve()

    assert layout.config_path == root / "arch" / "trace.config.json"
    assert layout.high_level_md == root / "arch" / "high-level.md"
    assert layout.low_level_json("app-core") == root / "arch" / "low-level" / "app-core.json"
    assert layout.read_state_path == root / ".state" / "trace-reads.json"
    assert layout.module_id_for_trace_file(root / "arch" / "low-level" / "app-core.md") == (
        "app-core"
    )
    assert layout.module_id_for_trace_file(root / "arch" / "high-level.md") is None
