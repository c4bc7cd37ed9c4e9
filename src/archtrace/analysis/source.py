"""Text-pattern import/export extraction for TypeScript and JavaScript files.

This is deliberately *not* a parser. Each file is scanned line by line after
dropping commented lines; multi-line ``import { ... }`` / ``export { ... }``
lists are joined by counting braces until the list closes. The resulting
statements are matched against a small set of regular expressions.

Recognized imports
------------------
- ``import Foo from 'm'``                 default
- ``import { a, type B, c as d } from 'm'``  named (type-qualified, aliased)
- ``import type { T } from 'm'``
- ``import * as ns from 'm'``             namespace (recorded as ``* as ns``)
- ``import Foo, { a } from 'm'``          combined
- ``import 'm'``                          side effect (empty symbol list)
- ``import x = require('m')``
- ``const { a, b } = require('m')``       destructured require
- ``const { a } = await import('m')``     destructured dynamic import

Recognized exports
------------------
function / async function / generator, class (incl. ``abstract``), interface,
type alias, const / let / var (incl. destructuring and enum-like factories such
as ``Object.freeze({...})``), enum (incl. ``const enum``), ``export default``,
and re-exports (``export { a, b as c }``, ``export { x } from``, ``export type
{ T }``, ``export * from``, ``export * as ns from``). Repeated symbol names are
reported once.

Limitations
-----------
Re-exports are not followed into the target module, and module loading other
than the two destructuring shapes above (``require`` in expressions, computed
``import()`` specifiers) is not detected.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from archtrace.core.contracts.low_level import CallEntry, EventEntry, ExportEntry, ImportEntry
from archtrace.core.settings import get_logger

logger = get_logger("archtrace.source")

#: File suffixes the analyzer understands. Everything else yields no entries.
SOURCE_SUFFIXES: frozenset[str] = frozenset(
    {".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs"}
)

_IDENT = r"[A-Za-z_$][\w$]*"
_MAX_STATEMENT_LINES = 200


@dataclass
class FileAnalysis:
    """Extracted inventory of one source file."""

    exports: list[ExportEntry] = field(default_factory=list)
    imports: list[ImportEntry] = field(default_factory=list)
    calls: list[CallEntry] = field(default_factory=list)
    events: list[EventEntry] = field(default_factory=list)


# --------------------------------------------------------------------------- #
# Line preparation
# --------------------------------------------------------------------------- #


def _strip_comment_lines(text: str) -> list[str]:
    """Return stripped lines with whole-line and block comments removed."""
    out: list[str] = []
    in_block = False
    for raw in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        line = raw.strip()
        if in_block:
            if "*/" in line:
                in_block = False
                line = line.split("*/", 1)[1].strip()
            else:
                continue
        if not line or line.startswith("//"):
            continue
        if line.startswith("/*"):
            if "*/" not in line:
                in_block = True
                continue
            line = line.split("*/", 1)[1].strip()
            if not line:
                continue
        if line.startswith("*"):
            continue
        out.append(line)
    return out


_QUOTED = re.compile(r"""(['"`]).+?\1""")


def _statements(lines: Iterable[str], starts: re.Pattern[str]) -> list[str]:
    """Join statements that begin with ``starts`` until their braces balance.

    Lines that do not start a statement are ignored. A statement is complete
    once its braces balance and, for import-like statements, a quoted module
    specifier has appeared.
    """
    out: list[str] = []
    buf: list[str] = []
    depth = 0
    for line in lines:
        if not buf:
            if not starts.match(line):
                continue
            buf = [line]
            depth = line.count("{") - line.count("}")
        else:
            buf.append(line)
            depth += line.count("{") - line.count("}")
        joined = " ".join(buf)
        needs_specifier = joined.startswith("import") and not joined.endswith(";")
        if depth <= 0 and (not needs_specifier or _QUOTED.search(joined)):
            out.append(joined)
            buf = []
        elif len(buf) >= _MAX_STATEMENT_LINES:
            out.append(joined)
            buf = []
    if buf:
        out.append(" ".join(buf))
    return out


def _split_names(names: str) -> list[str]:
    return [n.strip() for n in names.split(",") if n.strip()]


# --------------------------------------------------------------------------- #
# Imports
# --------------------------------------------------------------------------- #

_IMPORT_START = re.compile(r"^(?:import(?:\s|\{|\*|'|\")|(?:const|let|var)\s*\{)")
_SIDE_EFFECT = re.compile(r"""^import\s*(['"])(?P<src>.+?)\1""")
_FROM_IMPORT = re.compile(
    r"""^import\s*(?:type\s+)?(?P<clause>.+?)\s*from\s*(['"])(?P<src>.+?)\2"""
)
_IMPORT_EQUALS = re.compile(
    rf"""^import\s+(?P<name>{_IDENT})\s*=\s*require\(\s*(['"])(?P<src>.+?)\2\s*\)"""
)
_DESTRUCTURED_REQUIRE = re.compile(
    r"""^(?:const|let|var)\s*\{(?P<names>[^}]*)\}\s*=\s*require\(\s*(['"])(?P<src>.+?)\2\s*\)"""
)
_DESTRUCTURED_DYNAMIC = re.compile(
    r"""^(?:const|let|var)\s*\{(?P<names>[^}]*)\}\s*=\s*"""
    r"""await\s+import\(\s*(['"])(?P<src>.+?)\2\s*\)"""
)


def _named_import(name: str) -> str:
    """``type Foo as Bar`` → ``Foo``."""
    name = re.sub(r"^type\s+", "", name.strip())
    return re.split(r"\s+as\s+", name, maxsplit=1)[0].strip()


def _destructured_name(name: str) -> str:
    """``a: alias = 1`` → ``a``."""
    return re.split(r"[:=]", name, maxsplit=1)[0].strip()


def _clause_symbols(clause: str) -> list[str]:
    symbols: list[str] = []
    brace = clause.find("{")
    head = clause if brace < 0 else clause[:brace]
    for part in _split_names(head):
        ns = re.match(rf"^\*\s*as\s+({_IDENT})$", part)
        if ns:
            symbols.append(f"* as {ns.group(1)}")
        elif re.match(rf"^{_IDENT}$", part):
            symbols.append(part)
    if brace >= 0:
        inner = clause[brace + 1 : clause.rfind("}") if "}" in clause else len(clause)]
        symbols.extend(n for n in (_named_import(x) for x in _split_names(inner)) if n)
    return symbols


def parse_imports(text: str) -> list[ImportEntry]:
    """Extract import statements from ``text`` in source order."""
    if not text:
        return []
    out: list[ImportEntry] = []
    for stmt in _statements(_strip_comment_lines(text), _IMPORT_START):
        if m := _IMPORT_EQUALS.match(stmt):
            out.append(ImportEntry(source=m.group("src"), symbols=[m.group("name")]))
        elif m := _FROM_IMPORT.match(stmt):
            symbols = _clause_symbols(m.group("clause"))
            out.append(ImportEntry(source=m.group("src"), symbols=symbols))
        elif m := _SIDE_EFFECT.match(stmt):
            out.append(ImportEntry(source=m.group("src"), symbols=[]))
        elif m := (_DESTRUCTURED_REQUIRE.match(stmt) or _DESTRUCTURED_DYNAMIC.match(stmt)):
            names = [_destructured_name(n) for n in _split_names(m.group("names"))]
            out.append(ImportEntry(source=m.group("src"), symbols=[n for n in names if n]))
    return out


# --------------------------------------------------------------------------- #
# Exports
# --------------------------------------------------------------------------- #

_EXPORT_LIST_START = re.compile(r"^export\s+(?:type\s+)?\{")
_DEFAULT_FUNCTION = re.compile(
    rf"^export\s+default\s+(?:async\s+)?function\b\s*\*?\s*(?P<name>{_IDENT})?"
)
_DEFAULT_CLASS = re.compile(rf"^export\s+default\s+(?:abstract\s+)?class\b\s*(?P<name>{_IDENT})?")
_DEFAULT_IDENT = re.compile(rf"^export\s+default\s+(?P<name>{_IDENT})\s*;?$")
_DEFAULT_ANY = re.compile(r"^export\s+default\b")
_SIMPLE_EXPORTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(rf"^export\s+(?:declare\s+)?(?:async\s+)?function\b\s*\*?\s*(?P<name>{_IDENT})"),
        "function",
    ),
    (re.compile(rf"^export\s+(?:declare\s+)?(?:abstract\s+)?class\s+(?P<name>{_IDENT})"), "class"),
    (re.compile(rf"^export\s+(?:declare\s+)?interface\s+(?P<name>{_IDENT})"), "interface"),
    (re.compile(rf"^export\s+(?:declare\s+)?(?:const\s+)?enum\s+(?P<name>{_IDENT})"), "enum"),
    (re.compile(rf"^export\s+(?:declare\s+)?type\s+(?P<name>{_IDENT})\s*(?:<|=)"), "type"),
    (re.compile(rf"^export\s+(?:declare\s+)?(?:const|let|var)\s+(?P<name>{_IDENT})"), "const"),
    (re.compile(rf"^export\s+(?:declare\s+)?(?:namespace|module)\s+(?P<name>{_IDENT})"), "const"),
)
_DESTRUCTURED_EXPORT = re.compile(
    r"^export\s+(?:const|let|var)\s*(?P<open>[{\[])(?P<names>[^}\]]*)[}\]]"
)
_EXPORT_LIST = re.compile(r"^export\s+(?P<type>type\s+)?\{(?P<names>[^}]*)\}")
_STAR_AS = re.compile(rf"""^export\s+\*\s+as\s+(?P<name>{_IDENT})\s+from\s*(['"])(?P<src>.+?)\2""")
_STAR = re.compile(r"""^export\s+\*\s*from\s*(['"])(?P<src>.+?)\1""")


def _list_exports(names: str, type_only: bool) -> list[ExportEntry]:
    out: list[ExportEntry] = []
    for raw in _split_names(names):
        is_type = type_only or raw.startswith("type ")
        raw = re.sub(r"^type\s+", "", raw)
        parts = re.split(r"\s+as\s+", raw, maxsplit=1)
        exported = parts[-1].strip()
        if not exported:
            continue
        if exported == "default":
            out.append(ExportEntry(symbol="default", type="default"))
        else:
            out.append(ExportEntry(symbol=exported, type="type" if is_type else "const"))
    return out


def _line_exports(stmt: str) -> list[ExportEntry]:
    if m := _DEFAULT_FUNCTION.match(stmt) or _DEFAULT_CLASS.match(stmt):
        name = m.group("name")
        if name in (None, "extends", "implements"):
            name = "default"
        return [ExportEntry(symbol=name, type="default")]
    if m := _DEFAULT_IDENT.match(stmt):
        return [ExportEntry(symbol=m.group("name"), type="default")]
    if _DEFAULT_ANY.match(stmt):
        return [ExportEntry(symbol="default", type="default")]
    if m := _STAR_AS.match(stmt):
        return [ExportEntry(symbol=m.group("name"), type="const")]
    if m := _STAR.match(stmt):
        return [ExportEntry(symbol=f"* from {m.group('src')}", type="const")]
    if m := _EXPORT_LIST.match(stmt):
        return _list_exports(m.group("names"), type_only=bool(m.group("type")))
    if m := _DESTRUCTURED_EXPORT.match(stmt):
        names = [_destructured_name(n) for n in _split_names(m.group("names"))]
        return [ExportEntry(symbol=n.lstrip("."), type="const") for n in names if n.lstrip(".")]
    for pattern, kind in _SIMPLE_EXPORTS:
        if m := pattern.match(stmt):
            return [ExportEntry(symbol=m.group("name"), type=kind)]  # type: ignore[arg-type]
    return []


def parse_exports(text: str) -> list[ExportEntry]:
    """Extract exported symbols from ``text``, first occurrence of a name wins."""
    if not text:
        return []
    lines = _strip_comment_lines(text)
    statements: list[str] = []
    buf: list[str] = []
    depth = 0
    for line in lines:
        if buf:
            buf.append(line)
            depth += line.count("{") - line.count("}")
            if depth <= 0:
                statements.append(" ".join(buf))
                buf = []
            continue
        if not line.startswith("export"):
            continue
        if _EXPORT_LIST_START.match(line) and line.count("{") > line.count("}"):
            buf = [line]
            depth = line.count("{") - line.count("}")
            continue
        statements.append(line)
    if buf:
        statements.append(" ".join(buf))

    seen: set[str] = set()
    out: list[ExportEntry] = []
    for stmt in statements:
        for entry in _line_exports(stmt):
            if entry.symbol not in seen:
                seen.add(entry.symbol)
                out.append(entry)
    return out


# --------------------------------------------------------------------------- #
# File entry point
# --------------------------------------------------------------------------- #


def is_source_file(path: str | Path) -> bool:
    """True if the analyzer understands files with this suffix."""
    return Path(path).suffix.lower() in SOURCE_SUFFIXES


def analyze_file(path: Path) -> FileAnalysis:
    """Analyze one file; unsupported, missing or unreadable files yield empty lists."""
    if not is_source_file(path):
        return FileAnalysis()
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Skipping unreadable source %s: %s", path, exc)
        return FileAnalysis()
    return FileAnalysis(exports=parse_exports(text), imports=parse_imports(text))


__all__ = [
    "SOURCE_SUFFIXES",
    "FileAnalysis",
    "parse_imports",
    "parse_exports",
    "is_source_file",
    "analyze_file",
]
