"""Low-level trace contracts: per-module file inventories.

Each module gets one :class:`LowLevelTrace` listing the files its globs select.
Per file we keep what a reader needs to see the module's surface:

- ``exports``: symbols the file exposes, with a coarse kind;
- ``imports``: module specifiers it loads, with the symbols it pulls in
  (an empty list means a side-effect import);
- ``calls`` / ``events``: reserved slots for inter-module calls and
  publish/subscribe edges. Generation leaves them empty; hand edits may fill
  them and sync carries those edits into the JSON.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from .base import TraceModel, check_timestamp

ExportType = Literal["function", "class", "interface", "type", "const", "enum", "default"]
EventType = Literal["publish", "subscribe"]

EXPORT_TYPES: tuple[str, ...] = (
    "function",
    "class",
    "interface",
    "type",
    "const",
    "enum",
    "default",
)
EVENT_TYPES: tuple[str, ...] = ("publish", "subscribe")


class ExportEntry(TraceModel):
    symbol: str = Field(min_length=1)
    type: ExportType


class ImportEntry(TraceModel):
    source: str = Field(min_length=1)
    symbols: list[str] = Field(default_factory=list)

    @property
    def is_side_effect(self) -> bool:
        """True for ``import 'x'`` style imports that bind nothing."""
        return not self.symbols


class CallEntry(TraceModel):
    target: str = Field(min_length=1)
    function: str = Field(min_length=1)
    context: str = ""


class EventEntry(TraceModel):
    type: EventType
    event_name: str = Field(min_length=1)
    channel: str = ""


class FileEntry(TraceModel):
    """Inventory of one source file inside a module."""

    file_path: str = Field(min_length=1)
    exports: list[ExportEntry] = Field(default_factory=list)
    imports: list[ImportEntry] = Field(default_factory=list)
    calls: list[CallEntry] = Field(default_factory=list)
    events: list[EventEntry] = Field(default_factory=list)


class LowLevelTrace(TraceModel):
    """Versioned file inventory persisted as ``low-level/<module-id>.json``."""

    module_id: str = Field(min_length=1)
    version: int = Field(ge=1)
    last_generated: str
    generated_by: str
    files: list[FileEntry] = Field(default_factory=list)

    @field_validator("last_generated")
    @classmethod
    def _timestamp_parses(cls, v: str) -> str:
        return check_timestamp(v)

    def get_file(self, file_path: str) -> FileEntry | None:
        """Return the entry for ``file_path``, or ``None``."""
        for entry in self.files:
            if entry.file_path == file_path:
                return entry
        return None


__all__ = [
    "ExportType",
    "EventType",
    "EXPORT_TYPES",
    "EVENT_TYPES",
    "ExportEntry",
    "ImportEntry",
    "CallEntry",
    "EventEntry",
    "FileEntry",
    "LowLevelTrace",
]
