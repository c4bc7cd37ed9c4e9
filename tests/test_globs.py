"""Unit tests for glob matching.

Covers the matcher's contract:
1) `*`, `**`, `?` and escaped literals translate as documented.
2) `./`-prefixed and bare paths match identically.
3) A pattern also matches any path that ends with `/` + pattern.
4) Comma alternation and empty input never raise.
"""

from __future__ import annotations

from archtrace.analysis.globs import compile_glob, matches_any, matches_glob, normalize_path


def test_normalize_path_strips_prefixes() -> None:
    """Backslashes become `/`; leading `./` and `/` are removed."""
    assert normalize_path("./src/core/a.ts") == "src/core/a.ts"
    assert normalize_path("/src/core/a.ts") == "src/core/a.ts"
    assert normalize_path("src\\core\\a.ts") == "src/core/a.ts"


def test_dot_slash_invariance() -> None:
    """Matching a path and its `./`-prefixed form gives the same answer."""
    for path in ("src/core/a.ts", "src/ui/App.tsx", "README.md"):
        for pattern in ("src/core/**", "*.md", "src/*/App.tsx"):
            assert matches_glob(path, pattern) == matches_glob(f"./{path}", pattern)


def test_single_star_stays_within_segment() -> None:
    assert matches_glob("src/a.ts", "src/*.ts")
    assert not matches_glob("src/core/a.ts", "src/*.ts")


def test_double_star_matches_zero_or_more_directories() -> None:
    assert matches_glob("src/a.ts", "src/**/*.ts")
    assert matches_glob("src/x/y/z/a.ts", "src/**/*.ts")
    assert matches_glob("src/core/deep/file.json", "src/core/**")


def test_question_mark_matches_one_character() -> None:
    assert matches_glob("src/ab.ts", "src/a?.ts")
    assert not matches_glob("src/abc.ts", "src/a?.ts")
    assert not matches_glob("src/a/.ts", "src/a?.ts")


def test_escaped_literal() -> None:
    r"""`\*` matches a literal star only."""
    assert matches_glob("src/*.ts", r"src/\*.ts")
    assert not matches_glob("src/a.ts", r"src/\*.ts")


def test_pattern_matches_path_suffix() -> None:
    """A pattern anchored nowhere also matches under any parent directory."""
    assert matches_glob("packages/x/src/core/a.ts", "src/core/**")
    assert matches_glob("deep/nested/README.md", "*.md")


def test_comma_alternation() -> None:
    """Each comma-separated alternative is trimmed; empty ones are ignored."""
    assert matches_glob("src/App.tsx", "src/*.ts, src/*.tsx")
    assert matches_glob("src/a.ts", ",, src/*.ts ,")
    assert not matches_glob("src/a.js", "src/*.ts,src/*.tsx")


def test_empty_or_invalid_input_is_false() -> None:
    """The matcher is total: bad input is a non-match, never an exception."""
    assert not matches_glob("", "src/**")
    assert not matches_glob(None, "src/**")
    assert not matches_glob("src/a.ts", "")
    assert not matches_glob("src/a.ts", None)
    assert compile_glob(None)("src/a.ts") is False
    assert not matches_any("src/a.ts", None)
    assert not matches_any("src/a.ts", [])


def test_matches_any() -> None:
    assert matches_any("src/ui/App.tsx", ["src/core/**", "src/ui/**"])
    assert not matches_any("lib/x.ts", ["src/core/**", "src/ui/**"])
