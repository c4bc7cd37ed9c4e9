"""Freshness enforcement: staleness checks, edit/commit gates and hook entry points."""

from __future__ import annotations

from .gates import READ_TTL_MS, GateDecision, check_commit, check_edit, record_trace_read
from .hooks import HookOutcome, run_commit_gate, run_read_gate
from .staleness import find_stale_modules, is_module_stale, stale_modules

__all__ = [
    "READ_TTL_MS",
    "GateDecision",
    "check_edit",
    "check_commit",
    "record_trace_read",
    "HookOutcome",
    "run_read_gate",
    "run_commit_gate",
    "is_module_stale",
    "find_stale_modules",
    "stale_modules",
]
