"""Trace generation entry points.

    from archtrace.generators import generate_all, generate_module, bootstrap
"""

from __future__ import annotations

from .bootstrap import bootstrap
from .runner import generate_all, generate_module

__all__ = ["generate_all", "generate_module", "bootstrap"]
