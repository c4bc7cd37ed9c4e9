"""Map a repository path to the module that owns it.

Resolution is a tiny rule engine: an ordered list of ``(module, predicate)``
pairs evaluated top to bottom, first match wins. The list mirrors the order of
``modules`` in ``trace.config.json``; when two modules' globs overlap, the one
declared first owns the path.

"No module" is a normal answer, not an error. Callers use it to skip
enforcement for untraced files, so nothing in this module raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from archtrace.core.contracts.config import ModuleConfig, TraceConfig

from .globs import PathPredicate, compile_glob, normalize_path


def _module_predicate(module: ModuleConfig) -> PathPredicate:
    predicates = [compile_glob(g) for g in module.file_globs]
    return lambda path: any(p(path) for p in predicates)


class ModuleResolver:
    """Ordered, first-match-wins path → module lookup."""

    __slots__ = ("_rules",)

    def __init__(self, config: TraceConfig) -> None:
        self._rules: list[tuple[ModuleConfig, PathPredicate]] = [
            (module, _module_predicate(module)) for module in config.modules
        ]

    def resolve(self, path: str) -> ModuleConfig | None:
        """Return the first module whose globs match ``path``."""
        if not isinstance(path, str):
            return None
        normalized = normalize_path(path)
        if not normalized:
            return None
        for module, predicate in self._rules:
            if predicate(normalized):
                return module
        return None

    def matches(self, module: ModuleConfig, path: str) -> bool:
        """Return True if ``path`` falls under ``module``'s own glob set."""
        for candidate, predicate in self._rules:
            if candidate.id == module.id:
                return predicate(normalize_path(path))
        return False


def _coerce_config(config: Any) -> TraceConfig | None:
    if isinstance(config, TraceConfig):
        return config
    if isinstance(config, Mapping):
        try:
            return TraceConfig.model_validate(dict(config))
        except ValidationError:
            return None
    return None


def resolve_module(path: Any, config: Any) -> ModuleConfig | None:
    """Resolve ``path`` against ``config``; ``None`` for no match or bad input.

    ``config`` may be a :class:`TraceConfig` or a raw mapping as loaded from
    JSON. Anything that does not validate resolves to ``None``.
    """
    if not isinstance(path, str) or not path.strip():
        return None
    cfg = _coerce_config(config)
    if cfg is None:
        return None
    return ModuleResolver(cfg).resolve(path)


__all__ = ["ModuleResolver", "resolve_module"]
