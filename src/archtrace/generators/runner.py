"""Generation entry points used by the CLI and bootstrap.

- :func:`generate_all`    regenerates every module's low-level trace and,
  unless ``low_level_only``, the high-level trace.
- :func:`generate_module` regenerates a single module's low-level trace.

Both load the configuration strictly (a missing or invalid config raises
:class:`TraceConfigError`) and return a :class:`GenerationResult` describing
what was written. Modules are processed sequentially in declaration order.
"""

from __future__ import annotations

import time

from archtrace.analysis.files import list_tracked_files
from archtrace.core.contracts.reports import GenerationResult
from archtrace.core.errors import UnknownModuleError
from archtrace.core.layout import TraceLayout
from archtrace.core.settings import Settings, get_logger, load_settings
from archtrace.core.storage import TraceStore

from .high_level import Curation, generate_high_level
from .low_level import generate_low_level

logger = get_logger("archtrace.generators")


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def generate_all(
    layout: TraceLayout,
    *,
    low_level_only: bool = False,
    curation: Curation | None = None,
    settings: Settings | None = None,
) -> GenerationResult:
    """Regenerate every configured module (and the module graph).

    Parameters
    ----------
    layout:
        Repository layout to read the config from and write traces into.
    low_level_only:
        Skip the high-level trace; ``high_level_version`` stays ``None``.
    curation:
        Curated edges keyed by module id, replacing the carried-over ones.
    settings:
        Source of the ``generatedBy`` label; the cached settings by default.
    """
    start = time.perf_counter()
    s = settings if settings is not None else load_settings()
    store = TraceStore(layout)
    config = store.load_config()
    tracked = list_tracked_files(layout.project_path(config.project_root), layout)

    result = GenerationResult()
    for module in config.modules:
        low = generate_low_level(
            module, config, store, generated_by=s.generated_by, tracked=tracked
        )
        result.low_level_results.append(low)
        result.modules_processed += 1
        result.files_generated += 2

    if not low_level_only:
        high = generate_high_level(config, store, generated_by=s.generated_by, curation=curation)
        result.high_level_version = high.version
        result.files_generated += 2

    result.duration_ms = _elapsed_ms(start)
    logger.info(
        "Generated %d module(s), %d file(s) in %dms",
        result.modules_processed,
        result.files_generated,
        result.duration_ms,
    )
    return result


def generate_module(
    layout: TraceLayout,
    module_id: str,
    *,
    settings: Settings | None = None,
) -> GenerationResult:
    """Regenerate one module's low-level trace.

    Raises
    ------
    UnknownModuleError
        If ``module_id`` is not declared in the config; the message lists the
        valid ids.
    """
    start = time.perf_counter()
    s = settings if settings is not None else load_settings()
    store = TraceStore(layout)
    config = store.load_config()
    module = config.get_module(module_id)
    if module is None:
        raise UnknownModuleError(module_id, config.module_ids())

    low = generate_low_level(module, config, store, generated_by=s.generated_by)
    result = GenerationResult(
        modules_processed=1,
        files_generated=2,
        low_level_results=[low],
        duration_ms=_elapsed_ms(start),
    )
    logger.info("Generated module %s v%d in %dms", module_id, low.version, result.duration_ms)
    return result


__all__ = ["generate_all", "generate_module"]
