"""Shared fixtures: a small TypeScript project with two traced modules.

Layout of the ``repo`` fixture::

    src/core/service.ts     → module app-core
    src/core/util.ts        → module app-core
    src/ui/App.tsx          → module app-ui
    README.md               → untraced

Every source file gets a modification time one hour in the past, so a trace
generated during the test is never older than its sources by accident.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from archtrace.core.contracts.config import ModuleConfig, TraceConfig
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import load_settings
from archtrace.core.storage import TraceStore

CORE_SERVICE = """\
import { Logger } from '../shared/logger';
import './polyfills';

export function startService(): void {}
export class CoreService {}
export const DEFAULT_PORT = 8080;
"""

CORE_UTIL = """\
export type Id = string;
export interface Options { verbose: boolean }
"""

UI_APP = """\
import React from 'react';
import { startService } from '../core/service';

export default function App() { return null; }
"""

SOURCES = {
    "src/core/service.ts": CORE_SERVICE,
    "src/core/util.ts": CORE_UTIL,
    "src/ui/App.tsx": UI_APP,
    "README.md": "# demo\n",
}


def set_mtime(path: Path, offset_seconds: float) -> None:
    """Set ``path``'s mtime to now + ``offset_seconds``."""
    stamp = time.time() + offset_seconds
    os.utime(path, (stamp, stamp))


def write_sources(root: Path, files: dict[str, str]) -> None:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        set_mtime(path, -3600)


@pytest.fixture(autouse=True)  # type: ignore[misc]
def _fresh_settings() -> Iterator[None]:
    """Drop cached settings around each test so env overrides never leak."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture  # type: ignore[misc]
def repo(tmp_path: Path) -> Path:
    """A repository root with the demo sources (no git; listing walks the tree)."""
    write_sources(tmp_path, SOURCES)
    return tmp_path


@pytest.fixture  # type: ignore[misc]
def config() -> TraceConfig:
    return TraceConfig(
        version=1,
        project_root=".",
        modules=[
            ModuleConfig(
                id="app-core",
                name="Core",
                description="Service layer.",
                file_globs=["src/core/**"],
            ),
            ModuleConfig(
                id="app-ui",
                name="UI",
                description="React front end.",
                file_globs=["src/ui/**"],
            ),
        ],
    )


@pytest.fixture  # type: ignore[misc]
def layout(repo: Path) -> TraceLayout:
    return TraceLayout(repo_root=repo)


@pytest.fixture  # type: ignore[misc]
def store(layout: TraceLayout, config: TraceConfig) -> TraceStore:
    """A store whose config has already been written."""
    s = TraceStore(layout)
    s.write_config(config)
    return s


@pytest.fixture  # type: ignore[misc]
def touch() -> Callable[[Path, float], None]:
    """Expose `set_mtime` to tests that need to age or freshen a file."""
    return set_mtime
