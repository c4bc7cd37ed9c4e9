"""High-level trace contracts: the module dependency graph.

- :class:`DependencyEdge`: one directed, typed relationship to another module.
- :class:`ModuleEdges`: curated ``dependencies``/``dependents`` for a module.
- :class:`HighLevelModule`: a configured module plus its edges.
- :class:`HighLevelTrace`: the versioned graph written to ``high-level.json``.

Edges are never inferred here. They come from external curation or are carried
over from the previous trace (see :mod:`archtrace.generators.high_level`).
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from .base import TraceModel, check_timestamp

RelationshipType = Literal[
    "imports",
    "calls",
    "publishes-to",
    "subscribes-from",
    "reads-from",
    "writes-to",
    "configures",
]

#: Closed set of relationship labels, in documentation order.
RELATIONSHIP_TYPES: tuple[str, ...] = (
    "imports",
    "calls",
    "publishes-to",
    "subscribes-from",
    "reads-from",
    "writes-to",
    "configures",
)


class DependencyEdge(TraceModel):
    """A relationship from the owning module to ``target_id``."""

    target_id: str = Field(min_length=1)
    relationship_type: RelationshipType
    description: str = ""


class ModuleEdges(TraceModel):
    """Curated edges for one module; replaces both lists when supplied."""

    dependencies: list[DependencyEdge] = Field(default_factory=list)
    dependents: list[DependencyEdge] = Field(default_factory=list)


class HighLevelModule(TraceModel):
    """One node of the module graph."""

    id: str = Field(min_length=1)
    name: str
    description: str = ""
    file_globs: list[str] = Field(default_factory=list)
    dependencies: list[DependencyEdge] = Field(default_factory=list)
    dependents: list[DependencyEdge] = Field(default_factory=list)


class HighLevelTrace(TraceModel):
    """Versioned module graph persisted as ``high-level.json``."""

    version: int = Field(ge=1)
    last_generated: str
    generated_by: str
    project_root: str
    modules: list[HighLevelModule] = Field(default_factory=list)

    @field_validator("last_generated")
    @classmethod
    def _timestamp_parses(cls, v: str) -> str:
        return check_timestamp(v)

    def get_module(self, module_id: str) -> HighLevelModule | None:
        """Return the node for ``module_id``, or ``None``."""
        for module in self.modules:
            if module.id == module_id:
                return module
        return None


__all__ = [
    "RelationshipType",
    "RELATIONSHIP_TYPES",
    "DependencyEdge",
    "ModuleEdges",
    "HighLevelModule",
    "HighLevelTrace",
]
