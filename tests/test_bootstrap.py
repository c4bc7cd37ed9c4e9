"""Tests for first-run bootstrap (module discovery + initial generation)."""

from __future__ import annotations

from pathlib import Path

import pytest

from archtrace.core.errors import BootstrapError, ConfigExistsError
from archtrace.core.layout import TraceLayout
from archtrace.core.storage import TraceStore
from archtrace.generators.bootstrap import bootstrap, discover_modules


def _mkfile(root: Path, rel: str, text: str = "export const x = 1;\n") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_discovers_monorepo_layout(tmp_path: Path) -> None:
    _mkfile(tmp_path, "apps/web-client/index.ts")
    _mkfile(tmp_path, "apps/api/main.ts")
    _mkfile(tmp_path, "apps/.cache/junk.ts")
    _mkfile(tmp_path, "apps/node_modules/dep/index.js")
    _mkfile(tmp_path, "packages/shared_utils/index.ts")
    _mkfile(tmp_path, "scripts/release.sh", "echo hi\n")
    _mkfile(tmp_path, "src/ignored.ts")

    modules = discover_modules(tmp_path)

    assert [(m.id, m.name, m.file_globs) for m in modules] == [
        ("api", "Api", ["apps/api/**"]),
        ("web-client", "Web Client", ["apps/web-client/**"]),
        ("pkg-shared-utils", "Shared Utils", ["packages/shared_utils/**"]),
        ("scripts", "Scripts", ["scripts/**"]),
    ]


def test_src_is_the_fallback(tmp_path: Path) -> None:
    _mkfile(tmp_path, "src/index.ts")
    (module,) = discover_modules(tmp_path)
    assert module.id == "src" and module.file_globs == ["src/**"]


def test_bootstrap_writes_config_and_generates(tmp_path: Path) -> None:
    _mkfile(tmp_path, "apps/api/main.ts", "export function serve() {}\n")
    _mkfile(tmp_path, "packages/core/index.ts", "export class Core {}\n")
    layout = TraceLayout(repo_root=tmp_path)

    result = bootstrap(layout)

    assert result.needs_review is True
    assert result.config_path == "docs/architecture/trace.config.json"
    assert result.modules_processed == 2
    assert result.files_generated == 7
    store = TraceStore(layout)
    assert store.load_config().module_ids() == ["api", "pkg-core"]
    api = store.load_low_level("api")
    assert api is not None and [f.file_path for f in api.files] == ["apps/api/main.ts"]
    assert layout.high_level_md.is_file()


def test_bootstrap_never_overwrites_a_config(store: TraceStore) -> None:
    before = store.layout.config_path.read_text(encoding="utf-8")
    with pytest.raises(ConfigExistsError):
        bootstrap(store.layout)
    assert store.layout.config_path.read_text(encoding="utf-8") == before


def test_bootstrap_with_nothing_to_model(tmp_path: Path) -> None:
    _mkfile(tmp_path, "README.md", "# empty\n")
    layout = TraceLayout(repo_root=tmp_path)
    with pytest.raises(BootstrapError):
        bootstrap(layout)
    assert not layout.config_path.exists()
