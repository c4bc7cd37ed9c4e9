"""Markdown primitives shared by the trace renderer and parser.

The trace documents use a deliberately small Markdown subset so that hand
edits stay parseable:

- a metadata header of HTML comments (``<!-- trace-version: 3 -->``);
- ATX headings (``##``/``###``) delimiting sections;
- pipe tables, one entity per row;
- ``_None_`` as the empty-state placeholder.

Any heading containing ``(not synced)`` marks free text that is never parsed,
diffed or overwritten.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from archtrace.core.result import Result, err, ok

T = TypeVar("T")

NONE_PLACEHOLDER = "_None_"
EMPTY_CELL = "-"
UNSYNCED_MARKER = "(not synced)"

# --------------------------------------------------------------------------- #
# Metadata header
# --------------------------------------------------------------------------- #

_META_FIELDS = {
    "trace_id": "trace-id",
    "version": "trace-version",
    "last_generated": "last-generated",
    "generated_by": "generated-by",
}


class DocumentMetadata(BaseModel):
    """Header fields of a trace document; any of them may be missing."""

    trace_id: str | None = None
    version: int | None = None
    last_generated: str | None = None
    generated_by: str | None = None


def _meta_value(text: str, key: str) -> str | None:
    m = re.search(rf"^\s*<!--\s*{re.escape(key)}:\s*(?P<v>.*?)\s*-->\s*$", text, re.MULTILINE)
    if m is None:
        return None
    value = m.group("v").strip()
    return value or None


def extract_metadata(text: str) -> DocumentMetadata:
    """Pull the four header fields by independent pattern match.

    A version that is not a plain integer is treated as absent.
    """
    raw = {name: _meta_value(text or "", key) for name, key in _META_FIELDS.items()}
    version_raw = raw.pop("version")
    version = int(version_raw) if version_raw and re.fullmatch(r"\d+", version_raw) else None
    return DocumentMetadata(version=version, **raw)


def render_metadata(trace_id: str, version: int, last_generated: str, generated_by: str) -> str:
    """Render the metadata header block."""
    values = {
        "trace-id": trace_id,
        "trace-version": str(version),
        "last-generated": last_generated,
        "generated-by": generated_by,
    }
    return "\n".join(f"<!-- {k}: {v} -->" for k, v in values.items())


# --------------------------------------------------------------------------- #
# Sections
# --------------------------------------------------------------------------- #

_HEADING = re.compile(r"^(?P<hashes>#{1,6})(?:\s+(?P<title>.*?))?\s*$")
_FENCE = re.compile(r"^\s*(```|~~~)")


@dataclass
class Section:
    """A heading and the body lines up to the next boundary.

    ``start_line`` is the 1-based line number of the heading, so body line
    ``i`` sits on document line ``start_line + 1 + i``.
    """

    heading: str
    level: int
    start_line: int
    lines: list[str] = field(default_factory=list)

    @property
    def synced(self) -> bool:
        return UNSYNCED_MARKER not in self.heading.lower()

    def line_number(self, index: int) -> int:
        return self.start_line + 1 + index


def _as_lines(text: str | Sequence[str]) -> list[str]:
    if isinstance(text, str):
        return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return list(text)


def _headings(lines: Sequence[str]) -> list[tuple[int, int, str] | None]:
    """Per line: ``(index, level, title)`` for headings outside code fences."""
    out: list[tuple[int, int, str] | None] = []
    in_fence = False
    for idx, line in enumerate(lines):
        if _FENCE.match(line):
            in_fence = not in_fence
            out.append(None)
            continue
        m = None if in_fence else _HEADING.match(line)
        out.append((idx, len(m.group("hashes")), (m.group("title") or "").strip()) if m else None)
    return out


def split_sections(
    text: str | Sequence[str], level: int, *, first_line: int = 1
) -> list[Section]:
    """Split ``text`` into ordered sections at heading depth ``level``.

    Content before the first heading of that depth is discarded. A shallower
    heading closes the current section without opening a new one, so a depth-3
    split stops at the next ``##`` boundary.

    Parameters
    ----------
    text:
        Document text or a list of lines.
    level:
        Heading depth to split on (2 for ``##``).
    first_line:
        Document line number of ``text``'s first line, for error reporting
        when splitting a sub-range.
    """
    lines = _as_lines(text)
    sections: list[Section] = []
    current: Section | None = None
    for idx, heading in enumerate(_headings(lines)):
        if heading is not None and heading[1] <= level:
            if heading[1] == level:
                current = Section(
                    heading=heading[2], level=level, start_line=first_line + idx
                )
                sections.append(current)
            else:
                current = None
            continue
        if current is not None:
            current.lines.append(lines[idx])
    return sections


def preamble(section: Section) -> list[str]:
    """Return a section's body lines that precede its first sub-heading."""
    out: list[str] = []
    for line, heading in zip(section.lines, _headings(section.lines), strict=True):
        if heading is not None:
            break
        out.append(line)
    return out


def extract_unsynced_sections(text: str) -> list[str]:
    """Return every ``(not synced)`` section verbatim, heading included."""
    lines = _as_lines(text or "")
    blocks: list[list[str]] = []
    capture_level: int | None = None
    for idx, heading in enumerate(_headings(lines)):
        if heading is not None and capture_level is not None and heading[1] <= capture_level:
            capture_level = None
        if heading is not None and capture_level is None and UNSYNCED_MARKER in heading[2].lower():
            capture_level = heading[1]
            blocks.append([])
        if capture_level is not None:
            blocks[-1].append(lines[idx])
    return ["\n".join(block).rstrip() for block in blocks]


# --------------------------------------------------------------------------- #
# Rows
# --------------------------------------------------------------------------- #

_SEPARATOR = re.compile(r"^\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?$")
_EMPHASIS_ONLY = re.compile(r"^(?P<m>\*\*|__|\*|_)[^|]*(?P=m)$")
_PLACEHOLDERS = frozenset({"none", "n/a"})


def is_separator_row(line: str) -> bool:
    return bool(_SEPARATOR.match(line.strip()))


def is_data_line(line: str) -> bool:
    """False for blank lines, separators, ``none`` placeholders and emphasis-only lines."""
    s = line.strip()
    if not s or is_separator_row(s):
        return False
    if s.strip("_*").strip().lower() in _PLACEHOLDERS:
        return False
    return not _EMPHASIS_ONLY.match(s)


# Escapes keep every value on one line and inside one cell. Edge spaces are
# escaped too because cells and inline values are stripped when read back.
_ESCAPES = {"\\": "\\\\", "|": "\\|", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"\\": "\\", "|": "|", "n": "\n", "r": "\r", "t": "\t", "s": " ", "-": "-"}


def escape_text(value: str) -> str:
    """Encode ``value`` as a single line that :func:`unescape_text` restores exactly."""
    body = value.strip(" ")
    lead = len(value) - len(value.lstrip(" "))
    trail = len(value) - len(value.rstrip(" ")) if body else 0
    encoded = "".join(_ESCAPES.get(ch, ch) for ch in body)
    return "\\s" * lead + encoded + "\\s" * trail


def unescape_text(raw: str) -> str:
    """Decode :func:`escape_text` output; unknown escapes are kept as typed."""
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "\\" and i + 1 < len(raw):
            nxt = raw[i + 1]
            out.append(_UNESCAPES.get(nxt, ch + nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def escape_cell(value: str) -> str:
    """Encode ``value`` for a table cell; empty becomes the ``-`` placeholder."""
    if not value:
        return EMPTY_CELL
    if value == EMPTY_CELL:
        return "\\" + EMPTY_CELL
    return escape_text(value)


def _split_cells(line: str) -> list[str]:
    """Split on unescaped pipes; cells come back stripped but still escaped."""
    s = line.strip()
    cells: list[str] = []
    current: list[str] = []
    i = 0
    ends_with_pipe = False
    while i < len(s):
        ch = s[i]
        if ch == "\\" and i + 1 < len(s):
            current.append(s[i : i + 2])
            i += 2
            ends_with_pipe = False
            continue
        if ch == "|":
            cells.append("".join(current))
            current = []
            ends_with_pipe = True
        else:
            current.append(ch)
            ends_with_pipe = False
        i += 1
    if not ends_with_pipe:
        cells.append("".join(current))
    if s.startswith("|") and cells:
        cells = cells[1:]
    return [c.strip() for c in cells]


def parse_row(line: str, field_count: int) -> Result[list[str], str]:
    """Split a pipe-delimited row into exactly ``field_count`` non-empty fields.

    Cells are unescaped; the ``-`` placeholder reads back as an empty string.
    """
    cells = _split_cells(line)
    if len(cells) != field_count:
        return err(f"expected {field_count} fields, found {len(cells)}")
    for i, cell in enumerate(cells, start=1):
        if not cell:
            return err(f"field {i} is empty")
    return ok(["" if c == EMPTY_CELL else unescape_text(c) for c in cells])


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Render a pipe table, or the ``_None_`` placeholder when there are no rows."""
    if not rows:
        return NONE_PLACEHOLDER
    out = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join("---" for _ in headers) + " |",
    ]
    for row in rows:
        out.append("| " + " | ".join(escape_cell(c) for c in row) + " |")
    return "\n".join(out)


@dataclass
class RowError:
    """A malformed row, with its 1-based document line number."""

    line: int
    message: str
    text: str = ""


@dataclass
class SectionParse(Generic[T]):
    entries: list[T] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


def parse_section(
    section: Section,
    headers: Sequence[str],
    build: Callable[[list[str]], Result[T, str]],
) -> SectionParse[T]:
    """Parse a section's table rows into entries, collecting row errors.

    The header row (the line directly above a separator row) and non-data
    lines are skipped. ``build`` turns the cells of a well-formed row into an
    entry or an error message; a cell the entry model rejects is a row error.
    """
    out: SectionParse[T] = SectionParse()
    lines = section.lines
    for idx, line in enumerate(lines):
        if not is_data_line(line):
            continue
        if idx + 1 < len(lines) and is_separator_row(lines[idx + 1]):
            continue
        try:
            result = parse_row(line, len(headers)).flat_map(build)
        except ValidationError as exc:
            result = err(f"invalid row: {exc.errors()[0]['msg']}")
        if result.is_ok():
            out.entries.append(result.unwrap())
        else:
            out.errors.append(
                RowError(
                    line=section.line_number(idx),
                    message=result.unwrap_err(),
                    text=line.strip(),
                )
            )
    return out


__all__ = [
    "NONE_PLACEHOLDER",
    "EMPTY_CELL",
    "UNSYNCED_MARKER",
    "DocumentMetadata",
    "extract_metadata",
    "render_metadata",
    "Section",
    "split_sections",
    "preamble",
    "extract_unsynced_sections",
    "is_separator_row",
    "is_data_line",
    "escape_cell",
    "parse_row",
    "render_table",
    "escape_text",
    "unescape_text",
    "RowError",
    "SectionParse",
    "parse_section",
]
