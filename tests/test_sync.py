"""Tests for document → canonical synchronization.

Scope
-----
1.  **Apply**: an edited field with matching timestamps updates the JSON.
2.  **Conflicts**: an edit against a different generation is reported, not applied.
3.  **Modes**: `force` bypasses conflicts; `dry_run` writes nothing.
4.  **Safety**: document-only entities are skipped; version/lastGenerated stay put;
    absent subsections and malformed rows never erase canonical data.
"""

from __future__ import annotations

from archtrace.core.contracts.high_level import DependencyEdge, HighLevelModule, HighLevelTrace
from archtrace.core.contracts.low_level import ExportEntry, FileEntry, ImportEntry, LowLevelTrace
from archtrace.core.layout import TraceLayout
from archtrace.core.storage import TraceStore
from archtrace.documents.markdown import DocumentMetadata
from archtrace.documents.parse import ParsedFile, ParsedLowLevelDocument, parse_low_level_document
from archtrace.documents.render import render_high_level, render_low_level
from archtrace.sync.engine import sync_pair_low_level, sync_traces, timestamps_differ

OLD = "2026-03-01T10:00:00.000Z"
NEW = "2026-03-02T10:00:00.000Z"


def _teams(stamp: str = OLD) -> HighLevelTrace:
    return HighLevelTrace(
        version=4,
        last_generated=stamp,
        generated_by="archtrace",
        project_root=".",
        modules=[
            HighLevelModule(
                id="dev-team",
                name="Dev Team",
                file_globs=["teams/dev/**"],
                dependencies=[DependencyEdge(target_id="qa-team", relationship_type="calls")],
            ),
            HighLevelModule(id="qa-team", name="QA Team", file_globs=["teams/qa/**"]),
            HighLevelModule(
                id="knowledge-team", name="Knowledge Team", file_globs=["teams/knowledge/**"]
            ),
        ],
    )


def _edited_document(trace: HighLevelTrace) -> str:
    """Render `trace` and retarget dev-team's only dependency to knowledge-team."""
    text = render_high_level(trace)
    assert text.count("| qa-team | calls |") == 1
    return text.replace("| qa-team | calls |", "| knowledge-team | calls |")


def _write_high_level(layout: TraceLayout, canonical: HighLevelTrace, document: str) -> None:
    TraceStore(layout).write_high_level(canonical)
    layout.high_level_md.write_text(document, encoding="utf-8")


def _core_trace(stamp: str = OLD) -> LowLevelTrace:
    return LowLevelTrace(
        module_id="app-core",
        version=2,
        last_generated=stamp,
        generated_by="archtrace",
        files=[
            FileEntry(
                file_path="src/core/service.ts",
                exports=[ExportEntry(symbol="startService", type="function")],
                imports=[ImportEntry(source="./polyfills", symbols=[])],
            )
        ],
    )


# --------------------------------------------------------------------------- #
# High level
# --------------------------------------------------------------------------- #


def test_matching_timestamps_apply_the_edit(layout: TraceLayout) -> None:
    """dev-team → qa-team becomes dev-team → knowledge-team."""
    canonical = _teams()
    _write_high_level(layout, canonical, _edited_document(canonical))

    result = sync_traces(layout)

    assert result.conflicts == [] and result.errors == []
    assert [c.message for c in result.changes] == ["Updated 1 dependencies in dev-team (was 1)"]
    assert result.files_updated == ["docs/architecture/high-level.json"]
    assert result.summary == "Synced 1 module(s): 1 field(s) changed, 0 conflict(s), 0 error(s)"

    synced = TraceStore(layout).load_high_level()
    assert synced is not None
    dev = synced.get_module("dev-team")
    assert dev is not None and [e.target_id for e in dev.dependencies] == ["knowledge-team"]
    assert synced.version == 4 and synced.last_generated == OLD


def test_unchanged_document_is_a_no_op(layout: TraceLayout) -> None:
    canonical = _teams()
    _write_high_level(layout, canonical, render_high_level(canonical))
    result = sync_traces(layout)
    assert result.changes == [] and result.files_updated == []
    assert result.summary == "Synced 0 module(s): 0 field(s) changed, 0 conflict(s), 0 error(s)"


def test_newer_canonical_makes_the_edit_a_conflict(layout: TraceLayout) -> None:
    """A document rendered from an older generation cannot overwrite newer data."""
    document = _edited_document(_teams(OLD))
    _write_high_level(layout, _teams(NEW), document)

    result = sync_traces(layout)

    assert result.changes == []
    assert result.files_updated == []
    (conflict,) = result.conflicts
    assert (conflict.entity, conflict.field) == ("dev-team", "dependencies")
    assert conflict.canonical_generated == NEW and conflict.document_generated == OLD
    assert conflict.canonical[0]["targetId"] == "qa-team"
    assert conflict.document[0]["targetId"] == "knowledge-team"

    untouched = TraceStore(layout).load_high_level()
    assert untouched is not None
    dev = untouched.get_module("dev-team")
    assert dev is not None and dev.dependencies[0].target_id == "qa-team"


def test_force_applies_despite_conflict(layout: TraceLayout) -> None:
    _write_high_level(layout, _teams(NEW), _edited_document(_teams(OLD)))
    result = sync_traces(layout, force=True)
    assert result.conflicts == []
    assert len(result.changes) == 1
    synced = TraceStore(layout).load_high_level()
    assert synced is not None and synced.last_generated == NEW
    dev = synced.get_module("dev-team")
    assert dev is not None and dev.dependencies[0].target_id == "knowledge-team"


def test_dry_run_writes_nothing(layout: TraceLayout) -> None:
    canonical = _teams()
    _write_high_level(layout, canonical, _edited_document(canonical))
    before = layout.high_level_json.read_text(encoding="utf-8")

    result = sync_traces(layout, dry_run=True)

    assert result.dry_run is True
    assert len(result.changes) == 1
    assert result.files_updated == []
    assert result.summary.startswith("[dry-run] Synced 1 module(s)")
    assert layout.high_level_json.read_text(encoding="utf-8") == before


def test_document_only_module_is_skipped(layout: TraceLayout) -> None:
    """Sync never creates entities; the extra module is reported as skipped."""
    canonical = _teams()
    extra = canonical.model_copy(
        update={
            "modules": [
                *canonical.modules,
                HighLevelModule(id="ops-team", name="Ops Team", file_globs=["ops/**"]),
            ]
        }
    )
    _write_high_level(layout, canonical, render_high_level(extra))

    result = sync_traces(layout)
    (skipped,) = result.changes
    assert skipped.skipped and skipped.entity == "ops-team"
    assert "0 field(s) changed" in result.summary
    reloaded = TraceStore(layout).load_high_level()
    assert reloaded is not None and reloaded.get_module("ops-team") is None


def test_timestamp_comparison() -> None:
    assert not timestamps_differ(OLD, "2026-03-01T10:00:00+00:00")
    assert timestamps_differ(OLD, NEW)
    assert timestamps_differ(OLD, None)
    assert timestamps_differ("garbage", "other garbage")


# --------------------------------------------------------------------------- #
# Low level
# --------------------------------------------------------------------------- #


def test_low_level_edit_applies_and_bad_rows_are_reported(layout: TraceLayout) -> None:
    """Good rows of an edited table apply; the malformed row becomes an error."""
    store = TraceStore(layout)
    canonical = _core_trace()
    store.write_low_level(canonical)
    text = render_low_level(canonical).replace(
        "| startService | function |",
        "| startService | function |\n| stopService | function |\n| broken | widget |",
    )
    layout.low_level_md("app-core").write_text(text, encoding="utf-8")

    result = sync_traces(layout)

    assert [c.message for c in result.changes] == [
        "Updated 2 exports in src/core/service.ts (was 1)"
    ]
    (error,) = result.errors
    assert error.document == "docs/architecture/low-level/app-core.md"
    assert "widget" in error.message and error.line > 0
    assert result.files_updated == ["docs/architecture/low-level/app-core.json"]

    synced = store.load_low_level("app-core")
    assert synced is not None and synced.version == 2
    entry = synced.get_file("src/core/service.ts")
    assert entry is not None
    assert [e.symbol for e in entry.exports] == ["startService", "stopService"]


def test_missing_subsection_leaves_field_alone() -> None:
    """A deleted `### Imports` heading is not read as 'imports nothing'."""
    canonical = _core_trace()
    parsed = ParsedLowLevelDocument(
        metadata=DocumentMetadata(
            trace_id="app-core", version=2, last_generated=OLD, generated_by="archtrace"
        ),
        files=[
            ParsedFile(
                file_path="src/core/service.ts",
                line=1,
                exports=[ExportEntry(symbol="startService", type="function")],
            )
        ],
    )
    outcome = sync_pair_low_level(canonical, parsed)
    assert outcome.changes == [] and outcome.conflicts == []
    assert outcome.trace is canonical


def test_document_only_file_is_skipped() -> None:
    canonical = _core_trace()
    edited = canonical.model_copy(
        update={"files": [*canonical.files, FileEntry(file_path="src/core/new.ts")]}
    )
    outcome = sync_pair_low_level(canonical, parse_low_level_document(render_low_level(edited)))
    assert [(c.entity, c.skipped) for c in outcome.changes] == [("src/core/new.ts", True)]
    assert outcome.applied == []
    assert outcome.trace.get_file("src/core/new.ts") is None


def test_mismatched_trace_id_is_an_error(layout: TraceLayout) -> None:
    store = TraceStore(layout)
    store.write_low_level(_core_trace())
    other = _core_trace().model_copy(update={"module_id": "app-ui"})
    layout.low_level_md("app-core").write_text(render_low_level(other), encoding="utf-8")

    result = sync_traces(layout)
    (error,) = result.errors
    assert "does not match" in error.message
    assert result.changes == []
