"""Tests for trace staleness detection.

Source mtimes are pinned with `os.utime` (the `touch` fixture) so the
comparison against the millisecond trace timestamp is deterministic.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path

from archtrace.core.clock import parse_timestamp
from archtrace.core.contracts.config import ModuleConfig, TraceConfig
from archtrace.core.layout import TraceLayout
from archtrace.core.storage import TraceStore
from archtrace.enforcement.staleness import find_stale_modules, is_module_stale, stale_modules
from archtrace.generators.runner import generate_all


def test_fresh_after_generation(store: TraceStore, config: TraceConfig) -> None:
    layout = store.layout
    generate_all(layout)
    assert not is_module_stale("app-core", config, layout)
    assert stale_modules(config, layout) == []


def test_missing_trace_is_stale(store: TraceStore, config: TraceConfig) -> None:
    assert is_module_stale("app-core", config, store.layout)


def test_unknown_module_is_not_stale(store: TraceStore, config: TraceConfig) -> None:
    assert not is_module_stale("nope", config, store.layout)


def test_newer_source_makes_module_stale(
    store: TraceStore, config: TraceConfig, touch: Callable[[Path, float], None]
) -> None:
    """Stale iff some matching file is strictly newer than lastGenerated."""
    layout = store.layout
    generate_all(layout)
    touch(layout.repo_root / "src/core/util.ts", 3600)

    assert is_module_stale("app-core", config, layout)
    assert not is_module_stale("app-ui", config, layout)
    assert stale_modules(config, layout) == ["app-core"]


def test_write_within_the_generation_millisecond_is_fresh(
    store: TraceStore, config: TraceConfig
) -> None:
    """Sub-millisecond mtime digits beyond lastGenerated do not count as newer."""
    layout = store.layout
    generate_all(layout)
    payload = json.loads(layout.low_level_json("app-core").read_text(encoding="utf-8"))
    generated = parse_timestamp(payload["lastGenerated"])
    assert generated is not None

    same_ms_ns = int(generated.timestamp()) * 1_000_000_000 + generated.microsecond * 1000 + 500_000
    os.utime(layout.repo_root / "src/core/util.ts", ns=(same_ms_ns, same_ms_ns))
    assert not is_module_stale("app-core", config, layout)

    next_ms_ns = same_ms_ns + 1_000_000
    os.utime(layout.repo_root / "src/core/util.ts", ns=(next_ms_ns, next_ms_ns))
    assert is_module_stale("app-core", config, layout)


def test_unparseable_timestamp_is_stale(store: TraceStore, config: TraceConfig) -> None:
    layout = store.layout
    generate_all(layout)
    path = layout.low_level_json("app-ui")
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["lastGenerated"] = "yesterday-ish"
    path.write_text(json.dumps(payload), encoding="utf-8")
    assert is_module_stale("app-ui", config, layout)


def test_module_without_files_is_never_stale(layout: TraceLayout) -> None:
    config = TraceConfig(
        modules=[ModuleConfig(id="ghost", name="Ghost", file_globs=["nowhere/**"])]
    )
    store = TraceStore(layout)
    store.write_config(config)
    generate_all(layout)
    assert not is_module_stale("ghost", config, layout)


def test_find_stale_modules_dedupes_and_ignores_untraced(
    store: TraceStore, config: TraceConfig, touch: Callable[[Path, float], None]
) -> None:
    layout = store.layout
    generate_all(layout)
    touch(layout.repo_root / "src/ui/App.tsx", 3600)
    touch(layout.repo_root / "src/core/service.ts", 3600)

    changed = ["README.md", "src/ui/App.tsx", "src/core/service.ts", "./src/ui/App.tsx"]
    assert find_stale_modules(changed, config, layout) == ["app-ui", "app-core"]
    assert find_stale_modules(["README.md"], config, layout) == []
