"""Timestamp helpers shared by traces, staleness checks and read tracking.

Trace timestamps are ISO-8601 strings normalized to UTC with millisecond
precision and a trailing ``"Z"``, e.g. ``"2026-10-18T02:02:37.104Z"``. Session
read state stores plain epoch milliseconds, which keeps the edit gate's
time-to-live arithmetic exact.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as a UTC ISO-8601 string with milliseconds and ``Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_timestamp() -> str:
    """Return the current time as a trace timestamp string."""
    return format_timestamp(datetime.now(UTC))


def parse_timestamp(value: object) -> datetime | None:
    """Parse a trace timestamp, returning ``None`` for anything unusable.

    Naive values are read as UTC. Non-strings, empty strings and malformed
    strings all yield ``None``; callers treat that as "no timestamp".
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


__all__ = ["format_timestamp", "utc_timestamp", "parse_timestamp", "now_ms"]
