"""First-run bootstrap: infer a module config from the directory layout.

Discovery follows the monorepo convention:

- ``apps/<name>/``     → module ``<name>``
- ``packages/<name>/`` → module ``pkg-<name>``
- ``scripts/``         → module ``scripts``
- ``src/``             → module ``src`` (only when nothing above was found)

Each discovery becomes one module with a title-cased name and a single
``<dir>/**`` glob. The inferred boundaries are a starting point, so the result
is flagged ``needs_review``.
"""

from __future__ import annotations

import re
import time
from pathlib import Path

from archtrace.core.contracts.config import ModuleConfig, TraceConfig
from archtrace.core.contracts.reports import GenerationResult
from archtrace.core.errors import BootstrapError, ConfigExistsError
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import Settings, get_logger
from archtrace.core.storage import TraceStore

from .runner import generate_all

logger = get_logger("archtrace.bootstrap")

_SKIP_DIRS = frozenset({"node_modules"})
_WORD_SPLIT = re.compile(r"[-_.\s]+")


def _slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "module"


def _title(name: str) -> str:
    return " ".join(w.capitalize() for w in _WORD_SPLIT.split(name) if w) or name


def _child_dirs(path: Path) -> list[Path]:
    if not path.is_dir():
        return []
    return sorted(
        p
        for p in path.iterdir()
        if p.is_dir() and not p.name.startswith(".") and p.name not in _SKIP_DIRS
    )


def discover_modules(repo_root: Path) -> list[ModuleConfig]:
    """Infer modules from ``apps/``, ``packages/``, ``scripts/`` and ``src/``."""
    modules: list[ModuleConfig] = []
    for app_dir in _child_dirs(repo_root / "apps"):
        modules.append(
            ModuleConfig(
                id=_slug(app_dir.name),
                name=_title(app_dir.name),
                description=f"Application in apps/{app_dir.name}.",
                file_globs=[f"apps/{app_dir.name}/**"],
            )
        )
    for pkg_dir in _child_dirs(repo_root / "packages"):
        modules.append(
            ModuleConfig(
                id=f"pkg-{_slug(pkg_dir.name)}",
                name=_title(pkg_dir.name),
                description=f"Shared package in packages/{pkg_dir.name}.",
                file_globs=[f"packages/{pkg_dir.name}/**"],
            )
        )
    if (repo_root / "scripts").is_dir():
        modules.append(
            ModuleConfig(
                id="scripts",
                name="Scripts",
                description="Repository scripts.",
                file_globs=["scripts/**"],
            )
        )
    if not modules and (repo_root / "src").is_dir():
        modules.append(
            ModuleConfig(
                id="src",
                name="Src",
                description="Project sources.",
                file_globs=["src/**"],
            )
        )

    # apps/foo and apps/Foo would slug to the same id; keep the first.
    unique: dict[str, ModuleConfig] = {}
    for module in modules:
        unique.setdefault(module.id, module)
    return list(unique.values())


def bootstrap(layout: TraceLayout, *, settings: Settings | None = None) -> GenerationResult:
    """Write an inferred config and run a full generation.

    Raises
    ------
    ConfigExistsError
        A config is already present; it is never overwritten.
    BootstrapError
        No candidate module directory was found.
    """
    start = time.perf_counter()
    store = TraceStore(layout)
    if store.config_exists():
        raise ConfigExistsError(
            f"Trace config already exists at {layout.relative(layout.config_path)}; "
            "edit it and run `archtrace generate` instead."
        )

    modules = discover_modules(layout.repo_root)
    if not modules:
        raise BootstrapError(
            f"No apps/, packages/, scripts/ or src/ directories found under {layout.repo_root}."
        )

    config = TraceConfig(version=1, project_root=".", modules=modules)
    config_path = store.write_config(config)
    logger.info("Bootstrapped %d module(s): %s", len(modules), ", ".join(config.module_ids()))

    result = generate_all(layout, settings=settings)
    result.needs_review = True
    result.config_path = layout.relative(config_path)
    result.files_generated += 1
    result.duration_ms = int((time.perf_counter() - start) * 1000)
    return result


__all__ = ["discover_modules", "bootstrap"]
