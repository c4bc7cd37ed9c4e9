"""Centralized configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local

The settings only locate things (repository root, traces directory, the
coordination directory holding session read state) and tune logging. The
module boundaries themselves live in `trace.config.json`, never here.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed configuration loaded from env and `.env` files.

    Attributes
    ----------
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`. Defaults to WARNING so
        hook invocations stay quiet on stderr.
    repo_root : Path
        Repository root every trace path is relative to; `ARCHTRACE_REPO_ROOT`.
    traces_dir : str
        Repo-relative directory holding the config and trace files.
    coordination_dir : str
        Repo-relative directory holding per-session coordination state.
    generated_by : str
        Label recorded in every trace's `generatedBy` field.
    """

    log_level: LogLevelName = Field(default="WARNING", alias="LOG_LEVEL")
    repo_root: Path = Field(default=Path("."), alias="ARCHTRACE_REPO_ROOT")
    traces_dir: str = Field(default="docs/architecture", alias="ARCHTRACE_TRACES_DIR")
    coordination_dir: str = Field(default=".archtrace", alias="ARCHTRACE_COORDINATION_DIR")
    generated_by: str = Field(default="archtrace", alias="ARCHTRACE_GENERATED_BY")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.WARNING)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    return Settings()


# Ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "archtrace") -> logging.Logger:
    """Return a process-global logger writing to stderr at the configured level.

    Hook harnesses read the allow/block decision from the exit code and show
    stderr to the user, so log lines never mix with command output on stdout.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
