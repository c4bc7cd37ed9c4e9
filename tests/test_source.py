"""Unit tests for text-pattern import/export extraction."""

from __future__ import annotations

from pathlib import Path

from archtrace.analysis.source import analyze_file, is_source_file, parse_exports, parse_imports

IMPORTS = """\
// import { ignored } from 'nope';
/* import { alsoIgnored } from 'nope'; */
import Default from './default';
import { a, type B, c as d } from './named';
import type { T } from './types';
import * as ns from './ns';
import Foo, { bar } from './combo';
import './side-effect';
import {
  multi,
  line,
} from './multi';
import legacy = require('./legacy');
const { x, y: alias } = require('./req');
const { lazy } = await import('./dyn');
const { notAnImport } = settings;
"""

EXPORTS = """\
export function start() {}
export async function load() {}
export function* gen() {}
export abstract class Base {}
export class Service {}
export interface Options {}
export type Id = string;
export const enum Mode { A }
export enum Color { Red }
export const LIMIT = 10;
export const Status = Object.freeze({ On: 'on' });
export const { alpha, beta } = pair;
export { helper, other as renamed };
export {
  one,
  two,
};
export type { Shape } from './shape';
export * from './all';
export * as utils from './utils';
export function start() {}
"""


def test_parse_imports_recognizes_every_form() -> None:
    """Each supported import shape yields `{source, symbols}` in source order."""
    entries = parse_imports(IMPORTS)
    got = [(e.source, e.symbols) for e in entries]
    assert got == [
        ("./default", ["Default"]),
        ("./named", ["a", "B", "c"]),
        ("./types", ["T"]),
        ("./ns", ["* as ns"]),
        ("./combo", ["Foo", "bar"]),
        ("./side-effect", []),
        ("./multi", ["multi", "line"]),
        ("./legacy", ["legacy"]),
        ("./req", ["x", "y"]),
        ("./dyn", ["lazy"]),
    ]


def test_side_effect_import_has_no_symbols() -> None:
    (entry,) = parse_imports("import 'reflect-metadata';\n")
    assert entry.is_side_effect


def test_parse_exports_recognizes_every_form() -> None:
    """Declarations, lists and re-exports map to the expected coarse kinds."""
    kinds = {e.symbol: e.type for e in parse_exports(EXPORTS)}
    assert kinds == {
        "start": "function",
        "load": "function",
        "gen": "function",
        "Base": "class",
        "Service": "class",
        "Options": "interface",
        "Id": "type",
        "Mode": "enum",
        "Color": "enum",
        "LIMIT": "const",
        "Status": "const",
        "alpha": "const",
        "beta": "const",
        "helper": "const",
        "renamed": "const",
        "one": "const",
        "two": "const",
        "Shape": "type",
        "* from ./all": "const",
        "utils": "const",
    }


def test_duplicate_exports_keep_first_occurrence() -> None:
    symbols = [e.symbol for e in parse_exports(EXPORTS)]
    assert symbols.count("start") == 1


def test_default_exports() -> None:
    """Named and anonymous default exports are both reported as `default`."""
    assert [(e.symbol, e.type) for e in parse_exports("export default function App() {}")] == [
        ("App", "default")
    ]
    assert [(e.symbol, e.type) for e in parse_exports("export default class extends Base {}")] == [
        ("default", "default")
    ]
    assert [(e.symbol, e.type) for e in parse_exports("export default Router;")] == [
        ("Router", "default")
    ]
    assert [(e.symbol, e.type) for e in parse_exports("export default { a: 1 };")] == [
        ("default", "default")
    ]
    assert [(e.symbol, e.type) for e in parse_exports("export { x as default };")] == [
        ("default", "default")
    ]


def test_empty_text_yields_nothing() -> None:
    assert parse_imports("") == []
    assert parse_exports("") == []


def test_analyze_file_reads_source(tmp_path: Path) -> None:
    path = tmp_path / "mod.ts"
    path.write_text("import { a } from './a';\nexport const b = 1;\n", encoding="utf-8")
    analysis = analyze_file(path)
    assert [i.source for i in analysis.imports] == ["./a"]
    assert [e.symbol for e in analysis.exports] == ["b"]
    assert analysis.calls == [] and analysis.events == []


def test_analyze_file_degrades_to_empty(tmp_path: Path) -> None:
    """Unsupported suffixes and missing files yield empty lists, not errors."""
    notes = tmp_path / "notes.md"
    notes.write_text("export const fake = 1;\n", encoding="utf-8")
    assert analyze_file(notes).exports == []
    assert analyze_file(tmp_path / "missing.ts").imports == []
    assert is_source_file("a.mjs") and not is_source_file("a.py")
