"""store command: record the current coverage as a branch baseline."""

from __future__ import annotations

import click
from rich.console import Console

from covlens_cli.errors import handle_errors
from covlens_core.checker import CoverageResult, analyze_coverage
from covlens_core.coverage.files import SUPPORTED_FORMATS
from covlens_core.mode import namespace_for_branch
from covlens_store.base import BaseNotesStore
from covlens_store.baseline import BaselineManager

console = Console()


def baseline_manager(store: BaseNotesStore, config: dict, branch: str) -> BaselineManager:
    """BaselineManager for ``branch``'s namespace, tuned from config.

    The CLI owns this wiring so covlens_store never sees the config format.
    """
    namespace = namespace_for_branch(branch, config.get("note_namespace", "coverage"))
    return BaselineManager(
        store,
        namespace,
        max_lookback=config.get("max_lookback", 50),
        max_retries=config.get("max_retries", 3),
        retry_delay=config.get("retry_delay", 1.0),
        remote=config.get("remote", "origin"),
    )


def record_baseline(
    store: BaseNotesStore,
    config: dict,
    coverage: CoverageResult,
    branch: str,
    commit: str | None = None,
) -> bool:
    """Store ``coverage`` for ``commit`` (HEAD by default) on ``branch``."""
    if not config.get("baseline_tracking", True):
        console.print("[yellow]Baseline tracking is disabled; nothing stored.[/yellow]")
        return False

    manager = baseline_manager(store, config, branch)
    console.print(f"Storing baseline with namespace: [bold]{manager.namespace}[/bold]")
    ok = manager.store_snapshot(
        coverage.coverage_percentage,
        coverage.total_lines,
        coverage.covered_lines,
        commit=commit,
    )
    if ok:
        console.print(f"[green]Baseline {coverage.coverage_percentage}% stored for {branch}.[/green]")
    else:
        console.print(
            f"[yellow]Could not push the baseline after {manager.max_retries} attempt(s); "
            "another job kept updating it.[/yellow]"
        )
    return ok


@click.command("store")
@click.option("--branch", default=None, help="Branch whose baseline to record. Defaults to main_branch.")
@click.option("--commit", default=None, help="Commit to attach the snapshot to. Defaults to HEAD.")
@click.option("--coverage-files", default=None, help="Newline-separated coverage paths or globs.")
@click.option(
    "--format",
    "coverage_format",
    type=click.Choice(SUPPORTED_FORMATS),
    default=None,
    help="Coverage report format. Overrides config file.",
)
@click.option("--strict", is_flag=True, help="Exit non-zero if the baseline could not be pushed.")
@click.pass_context
@handle_errors
def store_cmd(
    ctx,
    branch: str | None,
    commit: str | None,
    coverage_files: str | None,
    coverage_format: str | None,
    strict: bool,
):
    """Record the current coverage as the baseline for a branch.

    Parses the coverage reports, attaches a snapshot to the commit as a git
    note under refs/notes/coverage/<branch> and pushes it, retrying when
    another job pushed first.
    """
    config = with_overrides(ctx.obj["config"], coverage_files=coverage_files, coverage_format=coverage_format)
    branch = branch or config["main_branch"]

    coverage = analyze_coverage(config)
    ok = record_baseline(ctx.obj["store"], config, coverage, branch, commit=commit)
    if strict and not ok:
        raise click.ClickException("Baseline was not stored.")


def with_overrides(config: dict, **overrides) -> dict:
    merged = dict(config)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged
