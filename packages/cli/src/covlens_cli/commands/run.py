"""run command: do whatever the current GitHub Actions event calls for."""

from __future__ import annotations

import click
from rich.console import Console

from covlens_cli.commands.check import run_check
from covlens_cli.commands.store import record_baseline, with_overrides
from covlens_cli.errors import handle_errors
from covlens_core.checker import CheckOutcome, analyze_coverage, build_report, deliver_report
from covlens_core.coverage.files import SUPPORTED_FORMATS
from covlens_core.mode import MODES, STORE_BASELINE, detect_mode
from covlens_core.summary import write_outputs

console = Console()


@click.command("run")
@click.option(
    "--mode",
    type=click.Choice(list(MODES)),
    default=None,
    help="Force a mode instead of detecting it from the event.",
)
@click.option("--coverage-files", default=None, help="Newline-separated coverage paths or globs.")
@click.option(
    "--format",
    "coverage_format",
    type=click.Choice(SUPPORTED_FORMATS),
    default=None,
    help="Coverage report format. Overrides config file.",
)
@click.pass_context
@handle_errors
def run_cmd(ctx, mode: str | None, coverage_files: str | None, coverage_format: str | None):
    """Check a pull request or record a baseline, depending on the event.

    \b
    pull_request         → annotate uncovered changes, compare to the base branch
    push to main_branch  → store the coverage as the branch baseline
    anything else        → report coverage only
    """
    config = with_overrides(
        ctx.obj["config"],
        mode=mode,
        coverage_files=coverage_files,
        coverage_format=coverage_format,
    )
    store = ctx.obj["store"]
    context = detect_mode(config.get("mode"), main_branch=config["main_branch"])
    console.print(f"Mode: [bold]{context.mode}[/bold] (event: {context.event_name or 'unknown'})")

    coverage = analyze_coverage(config)

    if context.mode == STORE_BASELINE:
        if context.base_branch:
            record_baseline(store, config, coverage, context.base_branch)
        else:
            console.print("[dim]Skipping baseline storage (not on the main branch).[/dim]")

        if not context.is_pull_request:
            write_outputs(
                {
                    "coverage_percentage": coverage.coverage_percentage,
                    "files_analyzed": coverage.files_analyzed,
                    "annotation_count": 0,
                }
            )
            deliver_report(build_report(CheckOutcome(coverage=coverage)), config)
            return

    run_check(
        store,
        config,
        coverage,
        context.base_branch,
        pr_number=context.pr_number,
        head_sha=context.head_sha,
    )
