"""Fixed on-disk layout of the trace system.

All paths are relative to the repository root::

    <traces>/trace.config.json
    <traces>/high-level.json            <traces>/high-level.md
    <traces>/low-level/<module-id>.json <traces>/low-level/<module-id>.md
    <coordination>/trace-reads.json

``<traces>`` and ``<coordination>`` come from :mod:`archtrace.core.settings`
unless a caller builds a :class:`TraceLayout` explicitly (tests do).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from archtrace.core.settings import Settings, load_settings

CONFIG_FILENAME = "trace.config.json"
HIGH_LEVEL_STEM = "high-level"
LOW_LEVEL_DIRNAME = "low-level"
READ_STATE_FILENAME = "trace-reads.json"


@dataclass(frozen=True, slots=True)
class TraceLayout:
    """Resolved locations of every trace artifact for one repository."""

    repo_root: Path
    traces_dir: str = "docs/architecture"
    coordination_dir: str = ".archtrace"

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TraceLayout:
        """Build a layout from the (cached) settings."""
        s = settings if settings is not None else load_settings()
        return cls(
            repo_root=Path(s.repo_root).resolve(),
            traces_dir=s.traces_dir,
            coordination_dir=s.coordination_dir,
        )

    # ------------------------------ directories -----------------------------

    @property
    def traces_path(self) -> Path:
        return self.repo_root / self.traces_dir

    @property
    def low_level_path(self) -> Path:
        return self.traces_path / LOW_LEVEL_DIRNAME

    @property
    def coordination_path(self) -> Path:
        return self.repo_root / self.coordination_dir

    # --------------------------------- files --------------------------------

    @property
    def config_path(self) -> Path:
        return self.traces_path / CONFIG_FILENAME

    @property
    def high_level_json(self) -> Path:
        return self.traces_path / f"{HIGH_LEVEL_STEM}.json"

    @property
    def high_level_md(self) -> Path:
        return self.traces_path / f"{HIGH_LEVEL_STEM}.md"

    def low_level_json(self, module_id: str) -> Path:
        return self.low_level_path / f"{module_id}.json"

    def low_level_md(self, module_id: str) -> Path:
        return self.low_level_path / f"{module_id}.md"

    @property
    def read_state_path(self) -> Path:
        return self.coordination_path / READ_STATE_FILENAME

    # -------------------------------- helpers -------------------------------

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the repo root in POSIX form, if possible."""
        try:
            return path.resolve().relative_to(self.repo_root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    def project_path(self, project_root: str) -> Path:
        """Resolve a config's ``projectRoot`` against the repo root."""
        return (self.repo_root / project_root).resolve()

    def is_trace_artifact(self, path: Path) -> bool:
        """True if ``path`` lives under the traces or coordination directory."""
        resolved = path.resolve()
        for base in (self.traces_path.resolve(), self.coordination_path.resolve()):
            if resolved == base or base in resolved.parents:
                return True
        return False

    def module_id_for_trace_file(self, path: Path) -> str | None:
        """Return the module id if ``path`` is a low-level trace file."""
        try:
            rel = path.resolve().relative_to(self.low_level_path.resolve())
        except ValueError:
            return None
        if len(rel.parts) != 1 or rel.suffix not in (".json", ".md"):
            return None
        return rel.stem

    def is_high_level_file(self, path: Path) -> bool:
        """True if ``path`` is the high-level JSON or Markdown trace."""
        resolved = path.resolve()
        return resolved in (self.high_level_json.resolve(), self.high_level_md.resolve())


__all__ = [
    "TraceLayout",
    "CONFIG_FILENAME",
    "HIGH_LEVEL_STEM",
    "LOW_LEVEL_DIRNAME",
    "READ_STATE_FILENAME",
]
