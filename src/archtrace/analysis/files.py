"""Enumerate the files a module's globs can select.

Source of truth is ``git ls-files`` run in the project root, so ignored build
output never shows up in a trace. When git is unavailable or the directory is
not a work tree, a plain directory walk stands in; it skips hidden directories
and ``node_modules``.

Paths are returned relative to the project root in POSIX form. Anything under
the traces or coordination directories is excluded so writing a trace can
never make its own module look stale.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from archtrace.core.contracts.config import ModuleConfig
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import get_logger

from .globs import matches_any

logger = get_logger("archtrace.files")

_SKIP_DIRS = frozenset({"node_modules"})


def _git_ls_files(root: Path) -> list[str] | None:
    try:
        proc = subprocess.run(
            ["git", "ls-files", "-z"],
            cwd=root,
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        logger.debug("git unavailable (%s); walking %s", exc, root)
        return None
    if proc.returncode != 0:
        logger.debug("git ls-files failed in %s; walking instead", root)
        return None
    raw = proc.stdout.decode("utf-8", errors="replace")
    return [p for p in raw.split("\0") if p]


def _walk_files(root: Path) -> list[str]:
    out: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in _SKIP_DIRS)
        base = Path(dirpath)
        for name in filenames:
            out.append((base / name).relative_to(root).as_posix())
    return out


def list_tracked_files(project_root: Path, layout: TraceLayout | None = None) -> list[str]:
    """Return version-controlled files under ``project_root``, sorted."""
    if not project_root.is_dir():
        return []
    files = _git_ls_files(project_root)
    if files is None:
        files = _walk_files(project_root)
    if layout is not None:
        files = [f for f in files if not layout.is_trace_artifact(project_root / f)]
    return sorted(set(files))


def module_files(module: ModuleConfig, tracked: Iterable[str]) -> list[str]:
    """Return the tracked paths matching ``module``'s glob set, in order."""
    return [path for path in tracked if matches_any(path, module.file_globs)]


def latest_mtime(project_root: Path, paths: Iterable[str]) -> datetime | None:
    """Return the newest modification time among ``paths`` (missing files skipped).

    The result is truncated to whole milliseconds, the precision of trace
    timestamps, so a file written in the same millisecond as its trace does
    not compare as newer.
    """
    newest: int | None = None
    for rel in paths:
        try:
            mtime = (project_root / rel).stat().st_mtime_ns // 1_000_000
        except OSError:
            continue
        if newest is None or mtime > newest:
            newest = mtime
    if newest is None:
        return None
    seconds, millis = divmod(newest, 1000)
    return datetime.fromtimestamp(seconds, UTC).replace(microsecond=millis * 1000)


__all__ = ["list_tracked_files", "module_files", "latest_mtime"]
