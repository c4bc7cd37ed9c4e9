"""Disk-backed reader/writer for trace artifacts.

`TraceStore` owns every read and write under a :class:`TraceLayout`:

- the configuration (``trace.config.json``), loaded strictly for generation
  commands and leniently for enforcement gates;
- canonical JSON traces plus their Markdown documents;
- on-disk version counters for regeneration.

Write semantics
---------------
JSON is written with ``indent=2``, ``ensure_ascii=False`` and a trailing newline.
Trace files are plain overwrites: a crash between the JSON and Markdown writes
leaves them briefly inconsistent, which the next generation repairs. Session
read state goes through :func:`atomic_write_json` (temp file + rename) because
losing it would wrongly block edits.

Usage
-----
>>> store = TraceStore(TraceLayout.from_settings())
>>> config = store.load_config()          # raises TraceConfigError
>>> trace = store.load_high_level()       # None if absent or invalid
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from archtrace.core.contracts.config import TraceConfig
from archtrace.core.contracts.high_level import HighLevelTrace
from archtrace.core.contracts.low_level import LowLevelTrace
from archtrace.core.errors import TraceConfigError
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import get_logger

logger = get_logger("archtrace.storage")


# --------------------------------------------------------------------------- #
# Low-level file helpers
# --------------------------------------------------------------------------- #


def read_json(path: Path) -> Any | None:
    """Return the decoded JSON at ``path``, or ``None`` if missing or unparseable."""
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.debug("Unreadable JSON at %s: %s", path, exc)
        return None


def read_text(path: Path) -> str | None:
    """Return the text at ``path``, or ``None`` if it cannot be read."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def write_json(path: Path, payload: Any) -> Path:
    """Write ``payload`` as pretty JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")
    return path


def write_text(path: Path, text: str) -> Path:
    """Write ``text`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def atomic_write_json(path: Path, payload: Any) -> Path:
    """Write JSON via a sibling temp file and ``os.replace``.

    Either the previous content or the new content is on disk afterwards,
    never a truncated mix.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def stored_version(path: Path) -> int:
    """Return the integer ``version`` recorded at ``path``, or 0.

    Anything other than a JSON object with an int ``version`` counts as absent,
    so the next generation starts at 1.
    """
    data = read_json(path)
    if isinstance(data, dict):
        version = data.get("version")
        if isinstance(version, int) and not isinstance(version, bool) and version > 0:
            return version
    return 0


def _describe_config_error(exc: ValidationError, path: Path) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"]) or "<root>"
    more = f" (+{exc.error_count() - 1} more)" if exc.error_count() > 1 else ""
    return f"Invalid trace config {path}: {loc}: {first['msg']}{more}"


# --------------------------------------------------------------------------- #
# Store
# --------------------------------------------------------------------------- #


class TraceStore:
    """Read and persist trace artifacts for one repository."""

    def __init__(self, layout: TraceLayout) -> None:
        self.layout = layout

    # ------------------------------- config ---------------------------------

    def config_exists(self) -> bool:
        return self.layout.config_path.is_file()

    def load_config(self) -> TraceConfig:
        """Load and validate the config, raising :class:`TraceConfigError`."""
        path = self.layout.config_path
        if not path.is_file():
            raise TraceConfigError(
                f"Trace config not found at {path}. Run `archtrace bootstrap` to create one."
            )
        data = read_json(path)
        if data is None:
            raise TraceConfigError(f"Trace config at {path} is not valid JSON.")
        try:
            return TraceConfig.model_validate(data)
        except ValidationError as exc:
            raise TraceConfigError(_describe_config_error(exc, path)) from exc

    def try_load_config(self) -> TraceConfig | None:
        """Load the config, returning ``None`` if it is missing or invalid."""
        try:
            return self.load_config()
        except TraceConfigError as exc:
            logger.debug("Trace system absent: %s", exc)
            return None

    def write_config(self, config: TraceConfig) -> Path:
        return write_json(self.layout.config_path, config.to_json_dict())

    # ----------------------------- high level -------------------------------

    def load_high_level(self) -> HighLevelTrace | None:
        """Return the canonical high-level trace, or ``None`` if absent/invalid."""
        data = read_json(self.layout.high_level_json)
        if data is None:
            return None
        try:
            return HighLevelTrace.model_validate(data)
        except ValidationError as exc:
            logger.debug("Ignoring invalid high-level trace: %s", exc)
            return None

    def write_high_level(self, trace: HighLevelTrace, markdown: str | None = None) -> list[Path]:
        written = [write_json(self.layout.high_level_json, trace.to_json_dict())]
        if markdown is not None:
            written.append(write_text(self.layout.high_level_md, markdown))
        return written

    # ------------------------------ low level -------------------------------

    def load_low_level(self, module_id: str) -> LowLevelTrace | None:
        """Return a module's canonical low-level trace, or ``None``."""
        data = read_json(self.layout.low_level_json(module_id))
        if data is None:
            return None
        try:
            return LowLevelTrace.model_validate(data)
        except ValidationError as exc:
            logger.debug("Ignoring invalid low-level trace for %s: %s", module_id, exc)
            return None

    def write_low_level(self, trace: LowLevelTrace, markdown: str | None = None) -> list[Path]:
        written = [write_json(self.layout.low_level_json(trace.module_id), trace.to_json_dict())]
        if markdown is not None:
            written.append(write_text(self.layout.low_level_md(trace.module_id), markdown))
        return written

    def low_level_module_ids(self) -> list[str]:
        """Return module ids that have a canonical low-level JSON file, sorted."""
        base = self.layout.low_level_path
        if not base.is_dir():
            return []
        return sorted(p.stem for p in base.glob("*.json") if p.is_file())


__all__ = [
    "TraceStore",
    "read_json",
    "read_text",
    "write_json",
    "write_text",
    "atomic_write_json",
    "stored_version",
]
