"""Decide whether a module's low-level trace is older than its sources.

A module is stale when its trace is missing, unreadable or carries no
parseable ``lastGenerated``, or when any file its globs select was modified
strictly after that timestamp. A module that selects no files is never stale.

Only the raw ``lastGenerated`` field is consulted, so a trace that fails full
validation for an unrelated reason still counts as fresh if its timestamp is.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from archtrace.analysis.files import latest_mtime, list_tracked_files, module_files
from archtrace.analysis.resolver import ModuleResolver
from archtrace.core.clock import parse_timestamp
from archtrace.core.contracts.config import TraceConfig
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import get_logger
from archtrace.core.storage import read_json

logger = get_logger("archtrace.staleness")


def trace_generated_at(layout: TraceLayout, module_id: str) -> datetime | None:
    """Return the parsed ``lastGenerated`` of a module's trace, or ``None``."""
    data = read_json(layout.low_level_json(module_id))
    if not isinstance(data, dict):
        return None
    return parse_timestamp(data.get("lastGenerated"))


def is_module_stale(
    module_id: str,
    config: TraceConfig,
    layout: TraceLayout,
    *,
    tracked: Sequence[str] | None = None,
) -> bool:
    """Return True if ``module_id``'s trace predates one of its files.

    ``False`` for a module the config does not declare.
    """
    module = config.get_module(module_id)
    if module is None:
        return False
    generated = trace_generated_at(layout, module_id)
    if generated is None:
        logger.debug("Module %s has no usable trace timestamp", module_id)
        return True

    project_dir = layout.project_path(config.project_root)
    if tracked is None:
        tracked = list_tracked_files(project_dir, layout)
    newest = latest_mtime(project_dir, module_files(module, tracked))
    if newest is None:
        return False
    return newest > generated


def find_stale_modules(
    changed_files: Iterable[str],
    config: TraceConfig,
    layout: TraceLayout,
) -> list[str]:
    """Return the stale modules owning ``changed_files``, in first-seen order.

    Paths are project-relative. Files no module owns are ignored.
    """
    resolver = ModuleResolver(config)
    owners: list[str] = []
    for path in changed_files:
        module = resolver.resolve(path)
        if module is not None and module.id not in owners:
            owners.append(module.id)
    if not owners:
        return []
    tracked = list_tracked_files(layout.project_path(config.project_root), layout)
    return [mid for mid in owners if is_module_stale(mid, config, layout, tracked=tracked)]


def stale_modules(config: TraceConfig, layout: TraceLayout) -> list[str]:
    """Return every configured module whose trace is stale, in config order."""
    tracked = list_tracked_files(layout.project_path(config.project_root), layout)
    return [
        m.id for m in config.modules if is_module_stale(m.id, config, layout, tracked=tracked)
    ]


__all__ = ["trace_generated_at", "is_module_stale", "find_stale_modules", "stale_modules"]
