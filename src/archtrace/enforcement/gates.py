"""Edit and commit gates built on the resolver and staleness checker.

Edit gate
---------
An edit to a file owned by a module is allowed only if that module's trace was
read in the current session within the last :data:`READ_TTL_MS` milliseconds.
Reading the module's low-level trace (``.md`` or ``.json``) counts as reading
that module; reading the high-level trace counts for every module.

Commit gate
-----------
A ``git commit`` is blocked while any module owning one of the committed files
has a stale trace. Files no module owns never block.

Both gates are pure decisions over values passed in; persisting read state and
talking to the hook harness happens in :mod:`archtrace.enforcement.hooks`.
"""

from __future__ import annotations

import re
import shlex
import subprocess
from pathlib import Path

from pydantic import BaseModel, Field

from archtrace.analysis.globs import normalize_path
from archtrace.analysis.resolver import ModuleResolver
from archtrace.core.clock import now_ms
from archtrace.core.contracts.config import TraceConfig
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import get_logger

from .read_state import TraceReadState, last_read, record_read
from .staleness import find_stale_modules

logger = get_logger("archtrace.gates")

READ_TTL_MS = 300_000

_SEGMENT_SPLIT = re.compile(r"&&|\|\||[;|\n]")
_GIT_COMMIT = re.compile(r"\bgit\b(?:\s+-{1,2}[^\s-]\S*(?:\s+[^\s-]\S*)?)*\s+commit(?![\w-])")
# Short options of `git commit` that consume the rest of their cluster as a value.
_VALUE_FLAGS = frozenset("mFCct")


class GateDecision(BaseModel):
    """Allow/block verdict plus the message shown to the agent."""

    allowed: bool
    message: str = ""
    module_id: str | None = None
    stale_modules: list[str] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Paths
# --------------------------------------------------------------------------- #


def project_relative(path: str, layout: TraceLayout, config: TraceConfig) -> str | None:
    """Map a repo-relative or absolute path to a project-relative one.

    Returns ``None`` for paths outside the project root.
    """
    if not path or not path.strip():
        return None
    candidate = Path(path)
    absolute = candidate if candidate.is_absolute() else layout.repo_root / normalize_path(path)
    try:
        rel = absolute.resolve().relative_to(layout.project_path(config.project_root))
    except ValueError:
        return None
    return rel.as_posix()


def _trace_paths(layout: TraceLayout, module_id: str) -> tuple[str, str]:
    return (
        layout.relative(layout.low_level_md(module_id)),
        layout.relative(layout.high_level_md),
    )


# --------------------------------------------------------------------------- #
# Edit gate
# --------------------------------------------------------------------------- #


def check_edit(
    file_path: str,
    *,
    session_id: str | None,
    config: TraceConfig,
    layout: TraceLayout,
    state: TraceReadState,
    now: int | None = None,
) -> GateDecision:
    """Decide whether editing ``file_path`` is allowed right now.

    Parameters
    ----------
    file_path:
        Absolute or repo-relative path of the file about to be edited.
    session_id:
        Current agent session; reads from other sessions do not count.
    config, layout:
        Module boundaries and trace locations.
    state:
        Read state as loaded from disk.
    now:
        Current time in epoch milliseconds (defaults to the wall clock).
    """
    rel = project_relative(file_path, layout, config)
    module = ModuleResolver(config).resolve(rel) if rel is not None else None
    if module is None:
        return GateDecision(
            allowed=True,
            message=f"{file_path} is not covered by any traced module.",
        )

    low_md, high_md = _trace_paths(layout, module.id)
    read_at = last_read(state, session_id, module.id)
    if read_at is None:
        return GateDecision(
            allowed=False,
            module_id=module.id,
            message=(
                f"{rel} belongs to module '{module.id}' ({module.name}), whose trace has not "
                f"been read in this session. Read {low_md} (or {high_md}) before editing."
            ),
        )

    current = now if now is not None else now_ms()
    elapsed = current - read_at
    if elapsed > READ_TTL_MS:
        return GateDecision(
            allowed=False,
            module_id=module.id,
            message=(
                f"The trace for module '{module.id}' ({module.name}) was last read "
                f"{elapsed // 1000}s ago, more than {READ_TTL_MS // 60_000} minutes. "
                f"Re-read {low_md} (or {high_md}) before editing {rel}."
            ),
        )
    return GateDecision(allowed=True, module_id=module.id)


def record_trace_read(
    file_path: str,
    *,
    session_id: str | None,
    config: TraceConfig,
    layout: TraceLayout,
    state: TraceReadState,
    now: int | None = None,
) -> TraceReadState | None:
    """Return the updated state if ``file_path`` is a trace file, else ``None``."""
    if not file_path:
        return None
    path = Path(file_path)
    if not path.is_absolute():
        path = layout.repo_root / normalize_path(file_path)

    if layout.is_high_level_file(path):
        module_ids = config.module_ids()
    else:
        module_id = layout.module_id_for_trace_file(path)
        if module_id is None or config.get_module(module_id) is None:
            return None
        module_ids = [module_id]

    at = now if now is not None else now_ms()
    logger.debug("Session %s read trace(s) for %s", session_id, ", ".join(module_ids))
    return record_read(state, session_id, module_ids, at)


# --------------------------------------------------------------------------- #
# Commit gate
# --------------------------------------------------------------------------- #


def _commit_segments(command: str) -> list[str]:
    """Return the tail of each chained segment that runs ``git commit``."""
    tails: list[str] = []
    for segment in _SEGMENT_SPLIT.split(command or ""):
        m = _GIT_COMMIT.search(segment)
        if m:
            tails.append(segment[m.end() :])
    return tails


def is_commit_command(command: str) -> bool:
    """True if ``command`` (possibly chained) runs ``git commit``."""
    return bool(_commit_segments(command))


def _tokens(text: str) -> list[str]:
    try:
        return shlex.split(text)
    except ValueError:
        return text.split()


def commit_flags(command: str) -> tuple[bool, bool]:
    """Return ``(all, amend)`` as requested by any commit in ``command``."""
    include_all = amend = False
    for tail in _commit_segments(command):
        for token in _tokens(tail):
            if token == "--":
                break
            if token == "--all":
                include_all = True
            elif token == "--amend":
                amend = True
            elif token.startswith("-") and not token.startswith("--"):
                for ch in token[1:]:
                    if ch == "a":
                        include_all = True
                    if ch in _VALUE_FLAGS:
                        break
    return include_all, amend


def _git_names(repo_root: Path, *args: str) -> list[str]:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        logger.debug("git unavailable: %s", exc)
        return []
    if proc.returncode != 0:
        logger.debug("git %s failed: %s", " ".join(args), proc.stderr.strip())
        return []
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


def changed_files_for_commit(command: str, repo_root: Path) -> list[str]:
    """List the repo-relative files a commit would record.

    Staged files always; unstaged tracked changes for ``-a``/``--all``; the
    files of ``HEAD`` for ``--amend``. ``--relative`` makes git report paths
    against ``repo_root`` rather than the work tree top and drop files outside it.
    """
    include_all, amend = commit_flags(command)
    files = _git_names(repo_root, "diff", "--cached", "--name-only", "--relative")
    if include_all:
        files += _git_names(repo_root, "diff", "--name-only", "--relative")
    if amend:
        files += _git_names(
            repo_root, "diff-tree", "--no-commit-id", "--name-only", "--relative", "-r", "HEAD"
        )
    return list(dict.fromkeys(files))


def check_commit(
    command: str,
    *,
    config: TraceConfig,
    layout: TraceLayout,
    changed_files: list[str] | None = None,
) -> GateDecision:
    """Block a ``git commit`` that touches modules with stale traces.

    ``changed_files`` (repo-relative) is computed from git when omitted.
    """
    if not is_commit_command(command):
        return GateDecision(allowed=True)

    repo_files = (
        changed_files
        if changed_files is not None
        else changed_files_for_commit(command, layout.repo_root)
    )
    project_files = [
        rel for rel in (project_relative(p, layout, config) for p in repo_files) if rel
    ]
    stale = find_stale_modules(project_files, config, layout)
    if not stale:
        return GateDecision(allowed=True)

    lines = [f"Commit blocked: {len(stale)} module trace(s) are stale."]
    lines += [f"  - {mid}: run `archtrace generate-module {mid}`" for mid in stale]
    return GateDecision(allowed=False, message="\n".join(lines), stale_modules=stale)


__all__ = [
    "READ_TTL_MS",
    "GateDecision",
    "project_relative",
    "check_edit",
    "record_trace_read",
    "is_commit_command",
    "commit_flags",
    "changed_files_for_commit",
    "check_commit",
]
