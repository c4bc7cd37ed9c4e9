"""Exception hierarchy for fatal trace operations.

Only failures that must stop a command are exceptions:

- :class:`TraceConfigError`: missing or invalid ``trace.config.json``.
- :class:`UnknownModuleError`: a single-module command named an unknown id.
- :class:`ConfigExistsError`: bootstrap refused to overwrite a config.
- :class:`BootstrapError`: bootstrap found nothing to model.

Document parse errors, sync conflicts and unreadable source files are *not*
exceptions; they are reported inside result objects.
"""

from __future__ import annotations

from collections.abc import Iterable


class TraceError(Exception):
    """Base class for all archtrace failures."""


class TraceConfigError(TraceError):
    """The trace configuration is missing or does not validate."""


class UnknownModuleError(TraceError):
    """A module id was requested that the configuration does not declare."""

    def __init__(self, module_id: str, valid_ids: Iterable[str]) -> None:
        self.module_id = module_id
        self.valid_ids = list(valid_ids)
        listed = ", ".join(self.valid_ids) if self.valid_ids else "(none configured)"
        super().__init__(f"Unknown module '{module_id}'. Valid module ids: {listed}")


class ConfigExistsError(TraceError):
    """Bootstrap was asked to run where a configuration already exists."""


class BootstrapError(TraceError):
    """Bootstrap could not infer any module from the directory layout."""


__all__ = [
    "TraceError",
    "TraceConfigError",
    "UnknownModuleError",
    "ConfigExistsError",
    "BootstrapError",
]
