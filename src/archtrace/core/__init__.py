"""Core package initializer for archtrace.

Holds the shared plumbing used by every other subpackage:
    from archtrace.core.settings import settings, load_settings, Settings, get_logger
    from archtrace.core.layout import TraceLayout
"""

from __future__ import annotations

__all__ = ["__doc__"]
