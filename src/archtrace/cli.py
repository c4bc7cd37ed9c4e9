# src/archtrace/cli.py
"""
archtrace Command Line Interface (CLI).

This module is the terminal surface of the trace system, built with `typer`
and `rich`. Every command is a thin shell over a library entry point; the
repository location comes from settings (`ARCHTRACE_REPO_ROOT`, default `.`).

Commands
--------
- **generate**: regenerate every low-level trace and the module graph.
- **generate-module**: regenerate one module's low-level trace.
- **bootstrap**: infer a config from the directory layout and generate.
- **sync**: apply Markdown edits back into canonical JSON.
- **status**: list modules whose traces are stale.
- **validate**: structurally check every canonical trace.
- **resolve**: show which module owns a path.
- **hook read-gate / hook commit-gate**: harness hooks reading JSON on stdin.

Usage
-----
    $ archtrace bootstrap
    $ archtrace generate --edges edges.json
    $ archtrace sync --dry-run
    $ echo '{"tool_input": {"command": "git commit"}}' | archtrace hook commit-gate
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from archtrace.analysis.resolver import resolve_module
from archtrace.core.contracts.reports import GenerationResult, SyncResult
from archtrace.core.contracts.validation import (
    ValidationReport,
    validate_high_level_trace,
    validate_low_level_trace,
)
from archtrace.core.errors import TraceError
from archtrace.core.layout import TraceLayout
from archtrace.core.storage import TraceStore, read_json
from archtrace.enforcement.gates import project_relative
from archtrace.enforcement.hooks import HookOutcome, run_commit_gate, run_read_gate
from archtrace.enforcement.staleness import stale_modules
from archtrace.generators.bootstrap import bootstrap as run_bootstrap
from archtrace.generators.high_level import load_curation
from archtrace.generators.runner import generate_all, generate_module
from archtrace.sync.engine import sync_traces

# Pick up ARCHTRACE_* overrides from a local .env before settings are read.
load_dotenv()

app = typer.Typer(
    help="archtrace: architecture traces, kept in sync and enforced.",
    rich_markup_mode="markdown",
)
hook_app = typer.Typer(help="Agent harness hooks (JSON envelope on stdin).")
app.add_typer(hook_app, name="hook")

console = Console()
err_console = Console(stderr=True)


# --------------------------------------------------------------------------- #
# Helpers: Rendering
# --------------------------------------------------------------------------- #


def _layout() -> TraceLayout:
    return TraceLayout.from_settings()


def _fail(title: str, exc: Exception) -> typer.Exit:
    console.print(f"[bold red]❌ {title}:[/bold red] {exc}")
    return typer.Exit(code=1)


def _render_generation(result: GenerationResult) -> None:
    """Render a generation report as a table plus a one-line footer."""
    table = Table(title="Low-level traces", show_lines=False)
    table.add_column("Module", style="cyan")
    table.add_column("Version", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Document", style="dim")
    for low in result.low_level_results:
        table.add_row(low.module_id, str(low.version), str(low.file_count), low.markdown_path)
    console.print(table)

    if result.high_level_version is not None:
        console.print(f"High-level trace: [bold]v{result.high_level_version}[/bold]")
    console.print(
        f"[bold green]✅ {result.modules_processed} module(s), "
        f"{result.files_generated} file(s) written[/bold green] (took {result.duration_ms}ms)"
    )


def _render_sync(result: SyncResult) -> None:
    """Render changes, conflicts and errors of a sync run."""
    if result.changes:
        table = Table(title="Changes")
        table.add_column("Trace", style="cyan")
        table.add_column("Entity")
        table.add_column("Field")
        table.add_column("Message")
        for change in result.changes:
            style = "dim" if change.skipped else ""
            table.add_row(change.trace_id, change.entity, change.field, change.message, style=style)
        console.print(table)

    for conflict in result.conflicts:
        console.print(
            f"[bold yellow]⚠️ Conflict[/bold yellow] {conflict.trace_id}: {conflict.message}"
        )
    for error in result.errors:
        console.print(f"[red]{error.document}:{error.line}[/red] {error.message}")

    colour = "yellow" if result.conflicts or result.errors else "green"
    console.print(f"[bold {colour}]{result.summary}[/bold {colour}]")


def _emit_hook(outcome: HookOutcome) -> None:
    """Print the hook diagnostic on stderr and exit with the hook's code."""
    if outcome.message:
        err_console.print(outcome.message, markup=False, highlight=False)
    raise typer.Exit(code=outcome.exit_code)


# --------------------------------------------------------------------------- #
# Commands: Generation
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def generate(
    low_level_only: Annotated[
        bool,
        typer.Option("--low-level-only", help="Skip regenerating the high-level trace."),
    ] = False,
    edges: Annotated[
        Path | None,
        typer.Option(
            "--edges",
            exists=True,
            dir_okay=False,
            readable=True,
            help="JSON file of curated edges: {module_id: {dependencies, dependents}}.",
        ),
    ] = None,
) -> None:
    """Regenerate every module's low-level trace and the module graph."""
    try:
        curation = load_curation(edges) if edges is not None else None
        result = generate_all(_layout(), low_level_only=low_level_only, curation=curation)
    except TraceError as e:
        raise _fail("Generation Error", e) from e
    _render_generation(result)


@app.command("generate-module")  # type: ignore[misc]
def generate_module_cmd(
    module_id: Annotated[str, typer.Argument(help="Module id from trace.config.json.")],
) -> None:
    """Regenerate a single module's low-level trace."""
    try:
        result = generate_module(_layout(), module_id)
    except TraceError as e:
        raise _fail("Generation Error", e) from e
    _render_generation(result)


@app.command("bootstrap")  # type: ignore[misc]
def bootstrap_cmd() -> None:
    """Infer a module config from apps/, packages/, scripts/ or src/ and generate."""
    try:
        result = run_bootstrap(_layout())
    except TraceError as e:
        raise _fail("Bootstrap Error", e) from e
    _render_generation(result)
    console.print(
        Panel(
            f"Module boundaries were inferred. Review [bold]{result.config_path}[/bold] "
            "and rerun `archtrace generate` after editing.",
            title="Needs review",
            border_style="yellow",
        )
    )


# --------------------------------------------------------------------------- #
# Commands: Sync & Inspection
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def sync(
    force: Annotated[
        bool, typer.Option("--force", help="Apply document edits even when they conflict.")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Report what would change without writing.")
    ] = False,
) -> None:
    """Apply hand edits in the Markdown documents to the canonical JSON."""
    result = sync_traces(_layout(), force=force, dry_run=dry_run)
    _render_sync(result)
    if result.conflicts:
        raise typer.Exit(code=1)


@app.command()  # type: ignore[misc]
def status() -> None:
    """List modules whose low-level trace is older than their files."""
    layout = _layout()
    try:
        config = TraceStore(layout).load_config()
    except TraceError as e:
        raise _fail("Config Error", e) from e

    stale = stale_modules(config, layout)
    if not stale:
        total = len(config.modules)
        console.print(f"[bold green]✅ All {total} module trace(s) are fresh.[/bold green]")
        return
    console.print(f"[bold yellow]{len(stale)} stale module trace(s):[/bold yellow]")
    for module_id in stale:
        console.print(f" • {module_id}  [dim]archtrace generate-module {module_id}[/dim]")


@app.command()  # type: ignore[misc]
def validate() -> None:
    """Structurally validate the high-level trace and every low-level trace."""
    layout = _layout()
    store = TraceStore(layout)
    reports: list[tuple[str, ValidationReport]] = []
    if layout.high_level_json.is_file():
        reports.append(
            (
                layout.relative(layout.high_level_json),
                validate_high_level_trace(read_json(layout.high_level_json)),
            )
        )
    for module_id in store.low_level_module_ids():
        path = layout.low_level_json(module_id)
        reports.append((layout.relative(path), validate_low_level_trace(read_json(path))))

    if not reports:
        console.print("[dim]No traces found.[/dim]")
        return

    failed = 0
    for name, report in reports:
        if report.valid:
            console.print(f"[green]✔[/green] {name}")
            continue
        failed += 1
        console.print(f"[red]✘ {name}[/red]")
        for error in report.errors:
            console.print(f"    {error}", markup=False)
    if failed:
        raise typer.Exit(code=1)


@app.command()  # type: ignore[misc]
def resolve(
    path: Annotated[str, typer.Argument(help="Repo-relative or absolute file path.")],
) -> None:
    """Show which module owns PATH (exit 1 if none does)."""
    layout = _layout()
    try:
        config = TraceStore(layout).load_config()
    except TraceError as e:
        raise _fail("Config Error", e) from e

    rel = project_relative(path, layout, config)
    module = resolve_module(rel, config) if rel is not None else None
    if module is None:
        console.print(f"[yellow]{path}[/yellow] is not covered by any module.")
        raise typer.Exit(code=1)
    console.print(f"{module.id}\t{module.name}")


# --------------------------------------------------------------------------- #
# Commands: Hooks
# --------------------------------------------------------------------------- #


@hook_app.command("read-gate")  # type: ignore[misc]
def read_gate() -> None:
    """Record trace reads; block edits to modules whose trace was not read recently."""
    _emit_hook(run_read_gate(sys.stdin.read()))


@hook_app.command("commit-gate")  # type: ignore[misc]
def commit_gate() -> None:
    """Block `git commit` while a committed file's module trace is stale."""
    _emit_hook(run_commit_gate(sys.stdin.read()))


if __name__ == "__main__":
    app()
