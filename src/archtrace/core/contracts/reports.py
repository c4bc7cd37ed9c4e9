"""Report contracts returned by generation and sync commands.

These are backward-looking summaries: they describe what a command did (or,
for a dry run, would do) and are rendered by the CLI. They serialize with the
same camelCase convention as the trace files so they can be dumped as JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from .base import TraceModel

# --------------------------------------------------------------------------- #
# Generation
# --------------------------------------------------------------------------- #


class LowLevelResult(TraceModel):
    """Outcome of generating one module's low-level trace."""

    module_id: str
    version: int
    file_count: int
    json_path: str
    markdown_path: str


class GenerationResult(TraceModel):
    """Outcome of ``generate-all``, ``generate-module`` or ``bootstrap``.

    Fields
    ------
    modules_processed : int
        Number of modules whose low-level trace was written.
    files_generated : int
        Number of trace files written (JSON and Markdown both count).
    duration_ms : int
        Wall-clock duration of the command.
    high_level_version : int | None
        Version of the high-level trace written, or ``None`` if not regenerated.
    needs_review : bool
        Set by bootstrap: module boundaries were inferred and need a human look.
    """

    modules_processed: int = 0
    files_generated: int = 0
    duration_ms: int = 0
    high_level_version: int | None = None
    low_level_results: list[LowLevelResult] = Field(default_factory=list)
    needs_review: bool = False
    config_path: str | None = None


# --------------------------------------------------------------------------- #
# Sync
# --------------------------------------------------------------------------- #


class SyncChange(TraceModel):
    """A field the document changed (or an entity sync had to skip)."""

    trace_id: str
    entity: str
    field: str
    before: list[dict[str, Any]] = Field(default_factory=list)
    after: list[dict[str, Any]] = Field(default_factory=list)
    message: str
    skipped: bool = False


class SyncConflict(TraceModel):
    """A field edited in a document that predates the canonical data."""

    trace_id: str
    entity: str
    field: str
    canonical: list[dict[str, Any]] = Field(default_factory=list)
    document: list[dict[str, Any]] = Field(default_factory=list)
    canonical_generated: str | None = None
    document_generated: str | None = None
    message: str


class SyncError(TraceModel):
    """A malformed line in an edited document."""

    document: str
    line: int
    message: str


class SyncResult(TraceModel):
    """Aggregate report of a sync run."""

    files_updated: list[str] = Field(default_factory=list)
    changes: list[SyncChange] = Field(default_factory=list)
    errors: list[SyncError] = Field(default_factory=list)
    conflicts: list[SyncConflict] = Field(default_factory=list)
    summary: str = ""
    dry_run: bool = False


__all__ = [
    "LowLevelResult",
    "GenerationResult",
    "SyncChange",
    "SyncConflict",
    "SyncError",
    "SyncResult",
]
