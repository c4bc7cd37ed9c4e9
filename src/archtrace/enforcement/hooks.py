"""Hook entry points: raw JSON envelope in, exit code and message out.

The agent harness runs a hook before each tool call and reads the verdict
from the exit code (0 allow, 2 block); the message goes to stderr.

Read gate envelope::

    {"session_id": "abc", "tool_name": "Edit", "tool_input": {"file_path": "/repo/src/x.ts"}}

A ``Read`` of a trace file records the read and is always allowed. Any other
tool is checked by the edit gate.

Commit gate envelope::

    {"tool_input": {"command": "git commit -am 'wip'"}}

Both hooks fail open: no config, an invalid config, unparseable input or any
internal error resolves to exit code 0 so a broken trace setup never wedges
the agent.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from archtrace.core.layout import TraceLayout
from archtrace.core.settings import get_logger
from archtrace.core.storage import TraceStore

from .gates import check_commit, check_edit, record_trace_read
from .read_state import load_read_state, save_read_state

logger = get_logger("archtrace.hooks")

EXIT_ALLOW = 0
EXIT_BLOCK = 2

READ_TOOL = "Read"


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_path: str | None = None
    command: str | None = None


class HookEnvelope(BaseModel):
    """The subset of the harness payload the gates look at."""

    model_config = ConfigDict(extra="ignore")

    session_id: str | None = None
    tool_name: str | None = None
    tool_input: ToolInput = Field(default_factory=ToolInput)


class HookOutcome(BaseModel):
    """Exit code plus the diagnostic to print on stderr (may be empty)."""

    exit_code: int = EXIT_ALLOW
    message: str = ""

    @property
    def blocked(self) -> bool:
        return self.exit_code == EXIT_BLOCK


def _parse_envelope(raw: str) -> HookEnvelope | None:
    if not raw or not raw.strip():
        return None
    try:
        return HookEnvelope.model_validate_json(raw)
    except ValidationError as exc:
        logger.debug("Ignoring malformed hook input: %s", exc.error_count())
        return None


def run_read_gate(
    raw: str,
    *,
    layout: TraceLayout | None = None,
    now: int | None = None,
) -> HookOutcome:
    """Record trace reads and gate edits on recently read traces."""
    try:
        envelope = _parse_envelope(raw)
        if envelope is None or not envelope.tool_input.file_path:
            return HookOutcome()
        layout = layout or TraceLayout.from_settings()
        config = TraceStore(layout).try_load_config()
        if config is None:
            return HookOutcome()

        file_path = envelope.tool_input.file_path
        state = load_read_state(layout.read_state_path)
        if envelope.tool_name == READ_TOOL:
            updated = record_trace_read(
                file_path,
                session_id=envelope.session_id,
                config=config,
                layout=layout,
                state=state,
                now=now,
            )
            if updated is not None:
                save_read_state(layout.read_state_path, updated)
            return HookOutcome()

        decision = check_edit(
            file_path,
            session_id=envelope.session_id,
            config=config,
            layout=layout,
            state=state,
            now=now,
        )
        if decision.allowed:
            return HookOutcome(message=decision.message)
        return HookOutcome(exit_code=EXIT_BLOCK, message=decision.message)
    except Exception:
        logger.exception("Read gate failed; allowing")
        return HookOutcome()


def run_commit_gate(
    raw: str,
    *,
    layout: TraceLayout | None = None,
    changed_files: list[str] | None = None,
) -> HookOutcome:
    """Block ``git commit`` while committed files belong to stale modules."""
    try:
        envelope = _parse_envelope(raw)
        if envelope is None or not envelope.tool_input.command:
            return HookOutcome()
        layout = layout or TraceLayout.from_settings()
        config = TraceStore(layout).try_load_config()
        if config is None:
            return HookOutcome()

        decision = check_commit(
            envelope.tool_input.command,
            config=config,
            layout=layout,
            changed_files=changed_files,
        )
        if decision.allowed:
            return HookOutcome(message=decision.message)
        return HookOutcome(exit_code=EXIT_BLOCK, message=decision.message)
    except Exception:
        logger.exception("Commit gate failed; allowing")
        return HookOutcome()


__all__ = [
    "EXIT_ALLOW",
    "EXIT_BLOCK",
    "HookEnvelope",
    "HookOutcome",
    "run_read_gate",
    "run_commit_gate",
]
