"""Document → canonical synchronization.

    from archtrace.sync import sync_traces
    report = sync_traces(layout, dry_run=True)
"""

from __future__ import annotations

from .engine import sync_pair_high_level, sync_pair_low_level, sync_traces

__all__ = ["sync_traces", "sync_pair_high_level", "sync_pair_low_level"]
