"""Apply hand edits from trace documents back into canonical JSON.

Every canonical/document pair is compared field by field:

- high level: ``dependencies`` and ``dependents`` per module;
- low level: ``exports``, ``imports``, ``calls`` and ``events`` per file.

Conflict law
------------
A document records the ``last-generated`` timestamp of the data it was
rendered from. If that differs from the canonical ``lastGenerated``, the
document was edited against an older (or newer) generation, and every field
that differs is a *conflict*: reported, never applied. When the timestamps are
equal nothing can conflict and the document wins. ``force`` skips the check.

Sync never creates entities (a module or file present only in the document is
reported as a skipped change), never deletes them, and never touches the
canonical ``version`` or ``lastGenerated``. Lists are compared and replaced
whole; there is no element-wise merge.

The pair functions are pure and operate on models; :func:`sync_traces` does
the I/O around them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from archtrace.core.clock import parse_timestamp
from archtrace.core.contracts.high_level import HighLevelTrace
from archtrace.core.contracts.low_level import LowLevelTrace
from archtrace.core.contracts.reports import SyncChange, SyncConflict, SyncError, SyncResult
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import get_logger
from archtrace.core.storage import TraceStore, read_text
from archtrace.documents.markdown import RowError
from archtrace.documents.parse import (
    ParsedHighLevelDocument,
    ParsedLowLevelDocument,
    parse_high_level_document,
    parse_low_level_document,
)
from archtrace.documents.render import HIGH_LEVEL_TRACE_ID

logger = get_logger("archtrace.sync")

HIGH_LEVEL_FIELDS = ("dependencies", "dependents")
LOW_LEVEL_FIELDS = ("exports", "imports", "calls", "events")

TraceT = TypeVar("TraceT", HighLevelTrace, LowLevelTrace)


@dataclass
class PairOutcome(Generic[TraceT]):
    """Result of syncing one document into one canonical trace.

    ``trace`` is the canonical model with every applied change; it is the
    input object itself when nothing was applied.
    """

    trace: TraceT
    changes: list[SyncChange] = field(default_factory=list)
    conflicts: list[SyncConflict] = field(default_factory=list)

    @property
    def applied(self) -> list[SyncChange]:
        return [c for c in self.changes if not c.skipped]


# --------------------------------------------------------------------------- #
# Field comparison
# --------------------------------------------------------------------------- #


def timestamps_differ(canonical: str, document: str | None) -> bool:
    """Compare generation timestamps; a missing document timestamp differs.

    Parsed instants are compared when both sides parse, so ``...Z`` and
    ``...+00:00`` spellings of the same moment are equal.
    """
    if document is None:
        return True
    a, b = parse_timestamp(canonical), parse_timestamp(document)
    if a is not None and b is not None:
        return a != b
    return canonical != document


def _dump(entries: Sequence[BaseModel]) -> list[dict[str, Any]]:
    return [e.model_dump(mode="json", by_alias=True) for e in entries]


def _compare_field(
    *,
    trace_id: str,
    entity: str,
    name: str,
    canonical: Sequence[BaseModel],
    document: Sequence[BaseModel],
    conflicting: bool,
    canonical_generated: str,
    document_generated: str | None,
) -> SyncChange | SyncConflict | None:
    before, after = _dump(canonical), _dump(document)
    if before == after:
        return None
    if conflicting:
        return SyncConflict(
            trace_id=trace_id,
            entity=entity,
            field=name,
            canonical=before,
            document=after,
            canonical_generated=canonical_generated,
            document_generated=document_generated,
            message=(
                f"{name} in {entity} was edited in a document generated at "
                f"{document_generated or 'an unknown time'}, but the canonical trace was "
                f"generated at {canonical_generated}; regenerate the document or use --force"
            ),
        )
    return SyncChange(
        trace_id=trace_id,
        entity=entity,
        field=name,
        before=before,
        after=after,
        message=f"Updated {len(after)} {name} in {entity} (was {len(before)})",
    )


def _skipped(trace_id: str, entity: str, kind: str) -> SyncChange:
    return SyncChange(
        trace_id=trace_id,
        entity=entity,
        field=kind,
        message=f"Skipped {kind} {entity}: not in the canonical trace (sync never adds entries)",
        skipped=True,
    )


# --------------------------------------------------------------------------- #
# Pure pair sync
# --------------------------------------------------------------------------- #


def sync_pair_high_level(
    canonical: HighLevelTrace,
    parsed: ParsedHighLevelDocument,
    *,
    force: bool = False,
) -> PairOutcome[HighLevelTrace]:
    """Diff a parsed high-level document against the canonical graph."""
    doc_generated = parsed.metadata.last_generated
    conflicting = not force and timestamps_differ(canonical.last_generated, doc_generated)
    outcome: PairOutcome[HighLevelTrace] = PairOutcome(trace=canonical)

    modules = list(canonical.modules)
    by_id = {m.id: i for i, m in enumerate(modules)}
    for doc_module in parsed.modules:
        idx = by_id.get(doc_module.id)
        if idx is None:
            outcome.changes.append(_skipped(HIGH_LEVEL_TRACE_ID, doc_module.id, "module"))
            continue
        current = modules[idx]
        updates: dict[str, object] = {}
        for name in HIGH_LEVEL_FIELDS:
            document_value = getattr(doc_module, name)
            if document_value is None:
                continue
            item = _compare_field(
                trace_id=HIGH_LEVEL_TRACE_ID,
                entity=current.id,
                name=name,
                canonical=getattr(current, name),
                document=document_value,
                conflicting=conflicting,
                canonical_generated=canonical.last_generated,
                document_generated=doc_generated,
            )
            if isinstance(item, SyncConflict):
                outcome.conflicts.append(item)
            elif isinstance(item, SyncChange):
                outcome.changes.append(item)
                updates[name] = list(document_value)
        if updates:
            modules[idx] = current.model_copy(update=updates)

    if outcome.applied:
        outcome.trace = canonical.model_copy(update={"modules": modules})
    return outcome


def sync_pair_low_level(
    canonical: LowLevelTrace,
    parsed: ParsedLowLevelDocument,
    *,
    force: bool = False,
) -> PairOutcome[LowLevelTrace]:
    """Diff a parsed low-level document against a module's canonical trace."""
    doc_generated = parsed.metadata.last_generated
    conflicting = not force and timestamps_differ(canonical.last_generated, doc_generated)
    outcome: PairOutcome[LowLevelTrace] = PairOutcome(trace=canonical)

    files = list(canonical.files)
    by_path = {f.file_path: i for i, f in enumerate(files)}
    for doc_file in parsed.files:
        idx = by_path.get(doc_file.file_path)
        if idx is None:
            outcome.changes.append(_skipped(canonical.module_id, doc_file.file_path, "file"))
            continue
        current = files[idx]
        updates: dict[str, object] = {}
        for name in LOW_LEVEL_FIELDS:
            document_value = getattr(doc_file, name)
            if document_value is None:
                continue
            item = _compare_field(
                trace_id=canonical.module_id,
                entity=current.file_path,
                name=name,
                canonical=getattr(current, name),
                document=document_value,
                conflicting=conflicting,
                canonical_generated=canonical.last_generated,
                document_generated=doc_generated,
            )
            if isinstance(item, SyncConflict):
                outcome.conflicts.append(item)
            elif isinstance(item, SyncChange):
                outcome.changes.append(item)
                updates[name] = list(document_value)
        if updates:
            files[idx] = current.model_copy(update=updates)

    if outcome.applied:
        outcome.trace = canonical.model_copy(update={"files": files})
    return outcome


# --------------------------------------------------------------------------- #
# Disk-level orchestration
# --------------------------------------------------------------------------- #


def _row_errors(document: str, errors: Sequence[RowError]) -> list[SyncError]:
    return [
        SyncError(
            document=document,
            line=e.line,
            message=f"{e.message}: {e.text}" if e.text else e.message,
        )
        for e in errors
    ]


def summarize(result: SyncResult, modules_touched: int) -> str:
    """Build the one-line summary shown after a sync."""
    applied = sum(1 for c in result.changes if not c.skipped)
    prefix = "[dry-run] " if result.dry_run else ""
    return (
        f"{prefix}Synced {modules_touched} module(s): {applied} field(s) changed, "
        f"{len(result.conflicts)} conflict(s), {len(result.errors)} error(s)"
    )


def sync_traces(layout: TraceLayout, *, force: bool = False, dry_run: bool = False) -> SyncResult:
    """Sync every document found under ``layout`` into its canonical JSON.

    Parameters
    ----------
    layout:
        Repository layout whose high-level and low-level pairs are synced.
    force:
        Apply every differing field, ignoring generation timestamps.
    dry_run:
        Compute the full report but write nothing.
    """
    store = TraceStore(layout)
    result = SyncResult(dry_run=dry_run)
    touched: set[str] = set()

    # ---- high level ----
    md_text = read_text(layout.high_level_md)
    if md_text is not None:
        doc_name = layout.relative(layout.high_level_md)
        canonical_high = store.load_high_level()
        if canonical_high is None:
            result.errors.append(
                SyncError(
                    document=doc_name,
                    line=0,
                    message="canonical high-level trace is missing or invalid",
                )
            )
        else:
            parsed_high = parse_high_level_document(md_text)
            result.errors.extend(_row_errors(doc_name, parsed_high.errors))
            high = sync_pair_high_level(canonical_high, parsed_high, force=force)
            result.changes.extend(high.changes)
            result.conflicts.extend(high.conflicts)
            touched.update(c.entity for c in high.applied)
            if high.applied and not dry_run:
                store.write_high_level(high.trace)
                result.files_updated.append(layout.relative(layout.high_level_json))

    # ---- low level ----
    for module_id in store.low_level_module_ids():
        md_path = layout.low_level_md(module_id)
        md_text = read_text(md_path)
        if md_text is None:
            continue
        doc_name = layout.relative(md_path)
        canonical_low = store.load_low_level(module_id)
        if canonical_low is None:
            result.errors.append(
                SyncError(
                    document=doc_name,
                    line=0,
                    message=f"canonical trace for {module_id} is invalid",
                )
            )
            continue
        parsed_low = parse_low_level_document(md_text)
        doc_id = parsed_low.metadata.trace_id
        if doc_id is not None and doc_id != module_id:
            result.errors.append(
                SyncError(
                    document=doc_name,
                    line=1,
                    message=f"trace-id '{doc_id}' does not match module '{module_id}'",
                )
            )
            continue
        result.errors.extend(_row_errors(doc_name, parsed_low.errors))
        low = sync_pair_low_level(canonical_low, parsed_low, force=force)
        result.changes.extend(low.changes)
        result.conflicts.extend(low.conflicts)
        if low.applied:
            touched.add(module_id)
            if not dry_run:
                store.write_low_level(low.trace)
                result.files_updated.append(layout.relative(layout.low_level_json(module_id)))

    result.summary = summarize(result, len(touched))
    logger.info(result.summary)
    return result


__all__ = [
    "HIGH_LEVEL_FIELDS",
    "LOW_LEVEL_FIELDS",
    "PairOutcome",
    "timestamps_differ",
    "sync_pair_high_level",
    "sync_pair_low_level",
    "summarize",
    "sync_traces",
]
