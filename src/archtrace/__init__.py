"""archtrace: architecture traces for a source tree.

A trace is a structured snapshot of a project's architecture, kept as canonical
JSON plus a hand-editable Markdown view:

- the *high-level* trace is the module dependency graph;
- each *low-level* trace is a per-module inventory of files, exports and imports.

The package generates both, keeps them in sync, and gates edits and commits on
their freshness.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
