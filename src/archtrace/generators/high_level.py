"""High-level trace generation: the module dependency graph.

Nodes come straight from the configuration. Edges are never inferred; for each
module, in priority order:

1. curated edges supplied for that module id (they replace both lists);
2. the module's edges in the existing ``high-level.json``;
3. nothing.

So a regeneration after adding a module keeps every hand-curated edge of the
other modules, and the version counter moves forward by one.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from archtrace.core.clock import utc_timestamp
from archtrace.core.contracts.config import TraceConfig
from archtrace.core.contracts.high_level import HighLevelModule, HighLevelTrace, ModuleEdges
from archtrace.core.errors import TraceConfigError
from archtrace.core.settings import get_logger
from archtrace.core.storage import TraceStore, read_json, read_text, stored_version
from archtrace.documents.markdown import extract_unsynced_sections
from archtrace.documents.render import render_high_level

logger = get_logger("archtrace.generators.high_level")

Curation = Mapping[str, ModuleEdges]

_CURATION_ADAPTER: TypeAdapter[dict[str, ModuleEdges]] = TypeAdapter(dict[str, ModuleEdges])


def parse_curation(data: Any) -> dict[str, ModuleEdges]:
    """Validate curated edges: ``{module_id: {dependencies, dependents}}``.

    A top-level ``{"modules": {...}}`` wrapper is also accepted.
    """
    if isinstance(data, Mapping) and isinstance(data.get("modules"), Mapping):
        data = data["modules"]
    return _CURATION_ADAPTER.validate_python(data)


def load_curation(path: Path) -> dict[str, ModuleEdges]:
    """Load curated edges from a JSON file, raising :class:`TraceConfigError`."""
    data = read_json(path)
    if data is None:
        raise TraceConfigError(f"Edge curation file {path} is missing or not valid JSON.")
    try:
        return parse_curation(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first["loc"]) or "<root>"
        raise TraceConfigError(f"Invalid edge curation {path}: {loc}: {first['msg']}") from exc


def build_high_level_trace(
    config: TraceConfig,
    *,
    version: int,
    generated_by: str,
    existing: HighLevelTrace | None = None,
    curation: Curation | None = None,
    last_generated: str | None = None,
) -> HighLevelTrace:
    """Assemble (but do not persist) the high-level trace."""
    modules: list[HighLevelModule] = []
    for mc in config.modules:
        node = HighLevelModule(
            id=mc.id,
            name=mc.name,
            description=mc.description,
            file_globs=list(mc.file_globs),
        )
        curated = curation.get(mc.id) if curation else None
        previous = existing.get_module(mc.id) if existing else None
        if curated is not None:
            node.dependencies = list(curated.dependencies)
            node.dependents = list(curated.dependents)
        elif previous is not None:
            node.dependencies = list(previous.dependencies)
            node.dependents = list(previous.dependents)
        modules.append(node)

    return HighLevelTrace(
        version=version,
        last_generated=last_generated or utc_timestamp(),
        generated_by=generated_by,
        project_root=config.project_root,
        modules=modules,
    )


def generate_high_level(
    config: TraceConfig,
    store: TraceStore,
    *,
    generated_by: str,
    curation: Curation | None = None,
) -> HighLevelTrace:
    """Generate and persist ``high-level.json`` and ``high-level.md``."""
    layout = store.layout
    trace = build_high_level_trace(
        config,
        version=stored_version(layout.high_level_json) + 1,
        generated_by=generated_by,
        existing=store.load_high_level(),
        curation=curation,
    )
    previous_md = read_text(layout.high_level_md)
    notes = extract_unsynced_sections(previous_md) if previous_md else None
    store.write_high_level(trace, render_high_level(trace, notes))
    logger.info("High-level trace v%d: %d module(s)", trace.version, len(trace.modules))
    return trace


__all__ = [
    "Curation",
    "parse_curation",
    "load_curation",
    "build_high_level_trace",
    "generate_high_level",
]
