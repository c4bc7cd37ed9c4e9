"""Low-level trace generation: one file inventory per module.

For a module we:

1. list the project's version-controlled files and keep those matching the
   module's globs (:mod:`archtrace.analysis.files`);
2. analyze each one (:mod:`archtrace.analysis.source`);
3. bump the on-disk version counter (absent or unreadable ⇒ 1);
4. render the Markdown view, carrying over any ``(not synced)`` sections from
   the previous document;
5. write ``low-level/<id>.json`` and ``low-level/<id>.md``.

The version is a pure counter: regenerating an unchanged module still bumps it
by exactly one.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from archtrace.analysis.files import list_tracked_files, module_files
from archtrace.analysis.source import analyze_file
from archtrace.core.clock import utc_timestamp
from archtrace.core.contracts.config import ModuleConfig, TraceConfig
from archtrace.core.contracts.low_level import FileEntry, LowLevelTrace
from archtrace.core.contracts.reports import LowLevelResult
from archtrace.core.settings import get_logger
from archtrace.core.storage import TraceStore, read_text, stored_version
from archtrace.documents.markdown import extract_unsynced_sections
from archtrace.documents.render import render_low_level

logger = get_logger("archtrace.generators.low_level")


def build_file_entries(project_dir: Path, paths: Sequence[str]) -> list[FileEntry]:
    """Analyze ``paths`` (relative to ``project_dir``) into file entries."""
    entries: list[FileEntry] = []
    for rel in paths:
        analysis = analyze_file(project_dir / rel)
        entries.append(
            FileEntry(
                file_path=rel,
                exports=analysis.exports,
                imports=analysis.imports,
                calls=analysis.calls,
                events=analysis.events,
            )
        )
    return entries


def build_low_level_trace(
    module: ModuleConfig,
    project_dir: Path,
    tracked: Sequence[str],
    *,
    version: int,
    generated_by: str,
    last_generated: str | None = None,
) -> LowLevelTrace:
    """Assemble (but do not persist) a module's low-level trace."""
    paths = module_files(module, tracked)
    return LowLevelTrace(
        module_id=module.id,
        version=version,
        last_generated=last_generated or utc_timestamp(),
        generated_by=generated_by,
        files=build_file_entries(project_dir, paths),
    )


def generate_low_level(
    module: ModuleConfig,
    config: TraceConfig,
    store: TraceStore,
    *,
    generated_by: str,
    tracked: Sequence[str] | None = None,
) -> LowLevelResult:
    """Generate and persist one module's low-level trace.

    Parameters
    ----------
    module, config:
        The module to trace and the config it belongs to.
    store:
        Where to read the previous version and write both representations.
    generated_by:
        Label recorded in the trace header.
    tracked:
        Pre-computed tracked file list (shared across modules by
        ``generate_all``); listed on demand when omitted.
    """
    layout = store.layout
    project_dir = layout.project_path(config.project_root)
    if tracked is None:
        tracked = list_tracked_files(project_dir, layout)

    json_path = layout.low_level_json(module.id)
    md_path = layout.low_level_md(module.id)
    trace = build_low_level_trace(
        module,
        project_dir,
        tracked,
        version=stored_version(json_path) + 1,
        generated_by=generated_by,
    )
    previous_md = read_text(md_path)
    notes = extract_unsynced_sections(previous_md) if previous_md else None
    store.write_low_level(trace, render_low_level(trace, notes))

    logger.info(
        "Low-level trace %s v%d: %d file(s)", module.id, trace.version, len(trace.files)
    )
    return LowLevelResult(
        module_id=module.id,
        version=trace.version,
        file_count=len(trace.files),
        json_path=layout.relative(json_path),
        markdown_path=layout.relative(md_path),
    )


__all__ = ["build_file_entries", "build_low_level_trace", "generate_low_level"]
