"""Per-session record of which module traces were read, and when.

The state is a plain value: helpers take a :class:`TraceReadState` and return
a new one, and only :func:`save_read_state` touches disk. Reads belong to a
single session; observing a different ``session_id`` starts from empty.

On disk (``<coordination>/trace-reads.json``)::

    {"session_id": "abc", "reads": {"app-core": 1760752957104}}

Timestamps are epoch milliseconds.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from archtrace.core.settings import get_logger
from archtrace.core.storage import atomic_write_json, read_json

logger = get_logger("archtrace.read_state")


class TraceReadState(BaseModel):
    """Last-read time per module id for one session."""

    session_id: str | None = None
    reads: dict[str, int] = Field(default_factory=dict)


def observe_session(state: TraceReadState, session_id: str | None) -> TraceReadState:
    """Return ``state`` if it belongs to ``session_id``, else a fresh state."""
    if state.session_id == session_id:
        return state
    return TraceReadState(session_id=session_id)


def record_read(
    state: TraceReadState,
    session_id: str | None,
    module_ids: Iterable[str],
    at_ms: int,
) -> TraceReadState:
    """Return a state with every id in ``module_ids`` read at ``at_ms``."""
    current = observe_session(state, session_id)
    reads = dict(current.reads)
    for module_id in module_ids:
        reads[module_id] = at_ms
    return TraceReadState(session_id=session_id, reads=reads)


def last_read(state: TraceReadState, session_id: str | None, module_id: str) -> int | None:
    """Return when ``module_id`` was last read in ``session_id``, if at all."""
    if state.session_id != session_id:
        return None
    return state.reads.get(module_id)


def load_read_state(path: Path) -> TraceReadState:
    """Load the persisted state; missing or corrupt files read as empty."""
    data = read_json(path)
    if data is None:
        return TraceReadState()
    try:
        return TraceReadState.model_validate(data)
    except ValidationError as exc:
        logger.warning("Discarding unreadable read state at %s: %s", path, exc.error_count())
        return TraceReadState()


def save_read_state(path: Path, state: TraceReadState) -> Path:
    """Persist ``state`` via temp file + rename."""
    return atomic_write_json(path, state.model_dump(mode="json"))


__all__ = [
    "TraceReadState",
    "observe_session",
    "record_read",
    "last_read",
    "load_read_state",
    "save_read_state",
]
