"""Simplified glob patterns compiled into path predicates.

Supported syntax
----------------
``*``
    Any run of characters except ``/``.
``**``
    Any run of characters including ``/``. ``**/`` also matches zero
    directories, so ``src/**/index.ts`` matches ``src/index.ts``.
``?``
    Exactly one character other than ``/``.
``\\x``
    The literal character ``x``.
``a, b``
    Alternation: the pattern matches if any comma-separated alternative
    (trimmed) matches.

Anchoring
---------
A pattern matches a path if it matches the whole path *or* a suffix of the path
that starts right after a ``/``. ``core/**`` therefore matches both
``core/a.ts`` and ``src/core/a.ts``, and an absolute path still resolves.

Every function here is total: bad input yields ``False``, never an exception.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import lru_cache

PathPredicate = Callable[[str], bool]


def normalize_path(path: str) -> str:
    """Normalize a path for matching: POSIX separators, no leading ``./`` or ``/``."""
    p = path.strip().replace("\\", "/")
    while True:
        if p.startswith("./"):
            p = p[2:]
        elif p.startswith("/"):
            p = p[1:]
        else:
            return p


def _strip_anchor(pattern: str) -> str:
    """Drop a leading ``./`` or ``/`` from a pattern; escapes are left alone."""
    while pattern.startswith(("./", "/")):
        pattern = pattern[2:] if pattern.startswith("./") else pattern[1:]
    return pattern


def _translate(pattern: str) -> str:
    """Translate one glob alternative into a regex fragment."""
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 < n:
                out.append(re.escape(pattern[i + 1]))
                i += 2
            else:
                out.append(re.escape(ch))
                i += 1
        elif ch == "*":
            if pattern.startswith("**", i):
                if pattern.startswith("**/", i):
                    out.append("(?:.*/)?")
                    i += 3
                else:
                    out.append(".*")
                    i += 2
            else:
                out.append("[^/]*")
                i += 1
        elif ch == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(ch))
            i += 1
    return "".join(out)


def _split_alternatives(pattern: str) -> list[str]:
    """Split on unescaped commas and trim each alternative."""
    parts: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            current.append(pattern[i : i + 2])
            i += 2
            continue
        if ch == ",":
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str] | None:
    alternatives = [_translate(_strip_anchor(alt)) for alt in _split_alternatives(pattern)]
    alternatives = [alt for alt in alternatives if alt]
    if not alternatives:
        return None
    body = "|".join(f"(?:{alt})" for alt in alternatives)
    try:
        return re.compile(rf"(?:.*/)?(?:{body})")
    except re.error:
        return None


def compile_glob(pattern: str | None) -> PathPredicate:
    """Compile ``pattern`` into a predicate over paths.

    Examples
    --------
    >>> is_core = compile_glob("src/core/**")
    >>> is_core("./src/core/service.ts"), is_core("src/ui/App.tsx")
    (True, False)
    """
    if not isinstance(pattern, str) or not pattern.strip():
        return lambda _path: False
    regex = _compile(pattern)
    if regex is None:
        return lambda _path: False

    def _predicate(path: str) -> bool:
        if not isinstance(path, str):
            return False
        normalized = normalize_path(path)
        return bool(normalized) and regex.fullmatch(normalized) is not None

    return _predicate


def matches_glob(path: str | None, pattern: str | None) -> bool:
    """Return True if ``path`` matches ``pattern``; False for empty input."""
    if not isinstance(path, str) or not path:
        return False
    return compile_glob(pattern)(path)


def matches_any(path: str | None, patterns: Iterable[str] | None) -> bool:
    """Return True if ``path`` matches any pattern in ``patterns``."""
    if not patterns:
        return False
    try:
        return any(matches_glob(path, p) for p in patterns)
    except TypeError:
        return False


__all__ = ["PathPredicate", "normalize_path", "compile_glob", "matches_glob", "matches_any"]
