"""Parse edited trace documents back into trace-shaped models.

The parsers compose the primitives in :mod:`archtrace.documents.markdown`:
split into ``##`` sections, split each into ``###`` subsections, parse the
tables row by row. Unsynced sections are skipped at both depths.

A subsection that is missing from the document parses as ``None`` (not an
empty list), so deleting a ``### Imports`` heading does not read as "this file
imports nothing". Row-level problems never raise; they are collected as
:class:`RowError` values next to whatever parsed cleanly.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import TypeVar

from pydantic import BaseModel, Field

from archtrace.core.contracts.high_level import (
    RELATIONSHIP_TYPES,
    DependencyEdge,
    HighLevelModule,
    HighLevelTrace,
)
from archtrace.core.contracts.low_level import (
    EVENT_TYPES,
    EXPORT_TYPES,
    CallEntry,
    EventEntry,
    ExportEntry,
    FileEntry,
    ImportEntry,
    LowLevelTrace,
)
from archtrace.core.result import Result, err, ok

from .markdown import (
    DocumentMetadata,
    RowError,
    Section,
    extract_metadata,
    is_data_line,
    parse_section,
    preamble,
    split_sections,
    unescape_text,
)
from .render import (
    CALL_HEADERS,
    EDGE_HEADERS,
    EVENT_HEADERS,
    EXPORT_HEADERS,
    IMPORT_HEADERS,
    SIDE_EFFECT_CELL,
)

T = TypeVar("T")

_FILE_PREFIX = "File:"
_MODULE_PREFIX = "Module:"
_PROJECT_ROOT = re.compile(r"^\*\*Project root:\*\*\s*`?(?P<v>.*?)`?\s*$", re.MULTILINE)
_ID_LINE = re.compile(r"^\*\*ID:\*\*\s*`?(?P<v>[^`]*?)`?\s*$")
_DESCRIPTION_LINE = re.compile(r"^\*\*Description:\*\*\s*(?P<v>.*?)\s*$")
_BULLET = re.compile(r"^\s*[-*+]\s+`?(?P<v>.*?)`?\s*$")

# --------------------------------------------------------------------------- #
# Row builders
# --------------------------------------------------------------------------- #


def _build_export(cells: list[str]) -> Result[ExportEntry, str]:
    symbol, kind = cells
    if kind not in EXPORT_TYPES:
        return err(f"unknown export type '{kind}' (expected one of {', '.join(EXPORT_TYPES)})")
    return ok(ExportEntry(symbol=symbol, type=kind))  # type: ignore[arg-type]


def _build_import(cells: list[str]) -> Result[ImportEntry, str]:
    source, symbols = cells
    if symbols == SIDE_EFFECT_CELL:
        return ok(ImportEntry(source=source, symbols=[]))
    names = [s.strip() for s in symbols.split(",") if s.strip()]
    return ok(ImportEntry(source=source, symbols=names))


def _build_call(cells: list[str]) -> Result[CallEntry, str]:
    target, function, context = cells
    return ok(CallEntry(target=target, function=function, context=context))


def _build_event(cells: list[str]) -> Result[EventEntry, str]:
    kind, name, channel = cells
    if kind not in EVENT_TYPES:
        return err(f"unknown event type '{kind}' (expected one of {', '.join(EVENT_TYPES)})")
    entry = EventEntry(type=kind, event_name=name, channel=channel)  # type: ignore[arg-type]
    return ok(entry)


def _build_edge(cells: list[str]) -> Result[DependencyEdge, str]:
    target, relationship, description = cells
    if relationship not in RELATIONSHIP_TYPES:
        return err(
            f"unknown relationship '{relationship}' "
            f"(expected one of {', '.join(RELATIONSHIP_TYPES)})"
        )
    return ok(
        DependencyEdge(
            target_id=target,
            relationship_type=relationship,  # type: ignore[arg-type]
            description=description,
        )
    )


# --------------------------------------------------------------------------- #
# Parsed shapes
# --------------------------------------------------------------------------- #


class ParsedFile(BaseModel):
    """A ``## File:`` section; ``None`` marks a subsection absent from the document."""

    file_path: str
    line: int
    exports: list[ExportEntry] | None = None
    imports: list[ImportEntry] | None = None
    calls: list[CallEntry] | None = None
    events: list[EventEntry] | None = None

    def to_entry(self) -> FileEntry:
        return FileEntry(
            file_path=self.file_path,
            exports=list(self.exports or []),
            imports=list(self.imports or []),
            calls=list(self.calls or []),
            events=list(self.events or []),
        )


class ParsedModule(BaseModel):
    """A ``## Module:`` section of the high-level document."""

    id: str
    name: str
    line: int
    description: str = ""
    file_globs: list[str] | None = None
    dependencies: list[DependencyEdge] | None = None
    dependents: list[DependencyEdge] | None = None

    def to_module(self) -> HighLevelModule:
        return HighLevelModule(
            id=self.id,
            name=self.name,
            description=self.description,
            file_globs=list(self.file_globs or []),
            dependencies=list(self.dependencies or []),
            dependents=list(self.dependents or []),
        )


def _require_metadata(metadata: DocumentMetadata) -> tuple[int, str, str]:
    version, generated, by = metadata.version, metadata.last_generated, metadata.generated_by
    if version is None or generated is None or by is None:
        missing = [
            name
            for name, value in (
                ("version", version),
                ("last_generated", generated),
                ("generated_by", by),
            )
            if value is None
        ]
        raise ValueError(f"document metadata is missing: {', '.join(missing)}")
    return version, generated, by


class ParsedLowLevelDocument(BaseModel):
    metadata: DocumentMetadata
    files: list[ParsedFile] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)

    def to_trace(self, module_id: str | None = None) -> LowLevelTrace:
        """Rebuild a :class:`LowLevelTrace`; raises ``ValueError`` without metadata."""
        version, generated, by = _require_metadata(self.metadata)
        trace_id = module_id or self.metadata.trace_id
        if not trace_id:
            raise ValueError("document metadata is missing: trace_id")
        return LowLevelTrace(
            module_id=trace_id,
            version=version,
            last_generated=generated,
            generated_by=by,
            files=[f.to_entry() for f in self.files],
        )


class ParsedHighLevelDocument(BaseModel):
    metadata: DocumentMetadata
    project_root: str | None = None
    modules: list[ParsedModule] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)

    def to_trace(self) -> HighLevelTrace:
        """Rebuild a :class:`HighLevelTrace`; raises ``ValueError`` without metadata."""
        version, generated, by = _require_metadata(self.metadata)
        return HighLevelTrace(
            version=version,
            last_generated=generated,
            generated_by=by,
            project_root=self.project_root if self.project_root is not None else ".",
            modules=[m.to_module() for m in self.modules],
        )


# --------------------------------------------------------------------------- #
# Document parsers
# --------------------------------------------------------------------------- #


def _subsections(section: Section) -> dict[str, Section]:
    """Synced ``###`` subsections keyed by lower-cased heading (first wins)."""
    out: dict[str, Section] = {}
    for sub in split_sections(section.lines, 3, first_line=section.start_line + 1):
        key = sub.heading.strip().lower()
        if sub.synced and key not in out:
            out[key] = sub
    return out


def _table(
    subs: dict[str, Section],
    name: str,
    headers: Sequence[str],
    build: Callable[[list[str]], Result[T, str]],
    errors: list[RowError],
) -> list[T] | None:
    sub = subs.get(name)
    if sub is None:
        return None
    parsed = parse_section(sub, headers, build)
    errors.extend(parsed.errors)
    return parsed.entries


def parse_low_level_document(text: str) -> ParsedLowLevelDocument:
    """Parse a low-level trace document."""
    doc = ParsedLowLevelDocument(metadata=extract_metadata(text))
    for section in split_sections(text or "", 2):
        if not section.synced or not section.heading.startswith(_FILE_PREFIX):
            continue
        file_path = section.heading[len(_FILE_PREFIX) :].strip()
        if not file_path:
            doc.errors.append(RowError(line=section.start_line, message="file section has no path"))
            continue
        subs = _subsections(section)
        doc.files.append(
            ParsedFile(
                file_path=file_path,
                line=section.start_line,
                exports=_table(subs, "exports", EXPORT_HEADERS, _build_export, doc.errors),
                imports=_table(subs, "imports", IMPORT_HEADERS, _build_import, doc.errors),
                calls=_table(subs, "calls", CALL_HEADERS, _build_call, doc.errors),
                events=_table(subs, "events", EVENT_HEADERS, _build_event, doc.errors),
            )
        )
    return doc


def _glob_list(sub: Section | None) -> list[str] | None:
    if sub is None:
        return None
    globs: list[str] = []
    for line in sub.lines:
        if not is_data_line(line):
            continue
        m = _BULLET.match(line)
        if m and m.group("v"):
            globs.append(m.group("v"))
    return globs


def parse_high_level_document(text: str) -> ParsedHighLevelDocument:
    """Parse the high-level trace document."""
    root = _PROJECT_ROOT.search(text or "")
    doc = ParsedHighLevelDocument(
        metadata=extract_metadata(text),
        project_root=root.group("v") if root else None,
    )
    for section in split_sections(text or "", 2):
        if not section.synced or not section.heading.startswith(_MODULE_PREFIX):
            continue
        name = unescape_text(section.heading[len(_MODULE_PREFIX) :].strip())
        module_id: str | None = None
        description = ""
        for line in preamble(section):
            if m := _ID_LINE.match(line.strip()):
                module_id = m.group("v").strip()
            elif m := _DESCRIPTION_LINE.match(line.strip()):
                description = unescape_text(m.group("v"))
        if not module_id:
            doc.errors.append(
                RowError(line=section.start_line, message=f"module '{name}' has no **ID:** line")
            )
            continue
        subs = _subsections(section)
        doc.modules.append(
            ParsedModule(
                id=module_id,
                name=name,
                line=section.start_line,
                description=description,
                file_globs=_glob_list(subs.get("file globs")),
                dependencies=_table(subs, "dependencies", EDGE_HEADERS, _build_edge, doc.errors),
                dependents=_table(subs, "dependents", EDGE_HEADERS, _build_edge, doc.errors),
            )
        )
    return doc


__all__ = [
    "ParsedFile",
    "ParsedModule",
    "ParsedLowLevelDocument",
    "ParsedHighLevelDocument",
    "parse_low_level_document",
    "parse_high_level_document",
]
