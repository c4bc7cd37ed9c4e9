"""Render canonical traces into hand-editable Markdown documents.

Both renderers are pure functions of the trace model (plus any unsynced notes
carried over from the previous document). Their output is the exact inverse of
:mod:`archtrace.documents.parse`:

    parse_low_level_document(render_low_level(t)).to_trace() == t

Layout (low level)::

    <!-- trace-id: app-core -->        metadata header
    # Low-Level Trace: app-core
    ## File: src/core/service.ts       one section per file
    ### Exports | Imports | Calls | Events
    ## Notes (not synced)              free text, never parsed

Layout (high level)::

    # High-Level Trace
    **Project root:** `.`
    ## Module: Core                    one section per module
    **ID:** `app-core`
    **Description:** ...
    ### File Globs | Dependencies | Dependents
    ## Notes (not synced)
"""

from __future__ import annotations

from collections.abc import Sequence

from archtrace.core.contracts.high_level import DependencyEdge, HighLevelTrace
from archtrace.core.contracts.low_level import FileEntry, LowLevelTrace

from .markdown import escape_text, render_metadata, render_table

HIGH_LEVEL_TRACE_ID = "high-level"
SIDE_EFFECT_CELL = "_(side-effect)_"

EXPORT_HEADERS = ("Symbol", "Type")
IMPORT_HEADERS = ("Source", "Symbols")
CALL_HEADERS = ("Target", "Function", "Context")
EVENT_HEADERS = ("Type", "Event", "Channel")
EDGE_HEADERS = ("Target", "Relationship", "Description")

DEFAULT_NOTES = (
    "## Notes (not synced)\n\n"
    "_Free-form notes. This section survives regeneration and is ignored by sync._"
)


def _notes_block(notes: Sequence[str] | None) -> str:
    kept = [n for n in (notes or []) if n.strip()]
    return "\n\n".join(kept) if kept else DEFAULT_NOTES


def _edit_hint(json_name: str) -> str:
    return (
        f"> Edit the tables below, then run `archtrace sync` to apply them to `{json_name}`.\n"
        "> Sections marked (not synced) are left alone."
    )


# --------------------------------------------------------------------------- #
# Low level
# --------------------------------------------------------------------------- #


def _file_section(entry: FileEntry) -> str:
    exports = [(e.symbol, e.type) for e in entry.exports]
    imports = [
        (i.source, ", ".join(i.symbols) if i.symbols else SIDE_EFFECT_CELL) for i in entry.imports
    ]
    calls = [(c.target, c.function, c.context) for c in entry.calls]
    events = [(e.type, e.event_name, e.channel) for e in entry.events]
    parts = [
        f"## File: {entry.file_path}",
        "### Exports",
        render_table(EXPORT_HEADERS, exports),
        "### Imports",
        render_table(IMPORT_HEADERS, imports),
        "### Calls",
        render_table(CALL_HEADERS, calls),
        "### Events",
        render_table(EVENT_HEADERS, events),
    ]
    return "\n\n".join(parts)


def render_low_level(trace: LowLevelTrace, notes: Sequence[str] | None = None) -> str:
    """Render a module's low-level trace as Markdown."""
    parts = [
        render_metadata(trace.module_id, trace.version, trace.last_generated, trace.generated_by),
        f"# Low-Level Trace: {trace.module_id}",
        _edit_hint(f"{trace.module_id}.json"),
    ]
    if trace.files:
        parts.extend(_file_section(entry) for entry in trace.files)
    else:
        parts.append("_No files matched this module's globs._")
    parts.append(_notes_block(notes))
    return "\n\n".join(parts) + "\n"


# --------------------------------------------------------------------------- #
# High level
# --------------------------------------------------------------------------- #


def _edge_rows(edges: Sequence[DependencyEdge]) -> list[tuple[str, str, str]]:
    return [(e.target_id, e.relationship_type, e.description) for e in edges]


def render_high_level(trace: HighLevelTrace, notes: Sequence[str] | None = None) -> str:
    """Render the module graph as Markdown."""
    parts = [
        render_metadata(
            HIGH_LEVEL_TRACE_ID, trace.version, trace.last_generated, trace.generated_by
        ),
        "# High-Level Trace",
        f"**Project root:** `{trace.project_root}`",
        _edit_hint("high-level.json"),
    ]
    for module in trace.modules:
        globs = "\n".join(f"- `{g}`" for g in module.file_globs) or "_None_"
        parts.extend(
            [
                f"## Module: {escape_text(module.name)}",
                f"**ID:** `{module.id}`\n**Description:** {escape_text(module.description)}",
                "### File Globs",
                globs,
                "### Dependencies",
                render_table(EDGE_HEADERS, _edge_rows(module.dependencies)),
                "### Dependents",
                render_table(EDGE_HEADERS, _edge_rows(module.dependents)),
            ]
        )
    parts.append(_notes_block(notes))
    return "\n\n".join(parts) + "\n"


__all__ = [
    "HIGH_LEVEL_TRACE_ID",
    "SIDE_EFFECT_CELL",
    "EXPORT_HEADERS",
    "IMPORT_HEADERS",
    "CALL_HEADERS",
    "EVENT_HEADERS",
    "EDGE_HEADERS",
    "render_low_level",
    "render_high_level",
]
