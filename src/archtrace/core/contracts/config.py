"""Trace configuration contracts: the ordered module list.

``trace.config.json`` declares the modules traces are scoped to::

    {
      "version": 1,
      "projectRoot": ".",
      "modules": [
        {"id": "app-core", "name": "Core", "description": "...",
         "fileGlobs": ["src/core/**"]}
      ]
    }

Contract notes
--------------
- Module order is load-bearing: a path belongs to the *first* module whose
  globs match it.
- Module ids must be unique; ``fileGlobs`` must be non-empty.
- Both models are frozen; a config is loaded once per operation.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field, model_validator

from .base import TraceModel


class ModuleConfig(TraceModel):
    """One glob-defined partition of the source tree."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique module identifier (slug).")
    name: str = Field(description="Human-readable module name.")
    description: str = Field(default="", description="What the module is for.")
    file_globs: list[str] = Field(
        min_length=1,
        description="Ordered glob patterns selecting the module's files.",
    )


class TraceConfig(TraceModel):
    """Top-level configuration: project root plus the ordered module list."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(default=1, description="Config schema version.")
    project_root: str = Field(default=".", description="Source root, repo-relative.")
    modules: list[ModuleConfig] = Field(description="Ordered module declarations.")

    @model_validator(mode="after")
    def _unique_ids(self) -> TraceConfig:
        """Reject configs that declare the same module id twice."""
        seen: set[str] = set()
        for module in self.modules:
            if module.id in seen:
                raise ValueError(f"duplicate module id: {module.id!r}")
            seen.add(module.id)
        return self

    def module_ids(self) -> list[str]:
        """Return module ids in declaration order."""
        return [m.id for m in self.modules]

    def get_module(self, module_id: str) -> ModuleConfig | None:
        """Return the module with ``module_id``, or ``None``."""
        for module in self.modules:
            if module.id == module_id:
                return module
        return None


__all__ = ["ModuleConfig", "TraceConfig"]
