"""history command: display recorded baselines from the notes store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from covlens_cli.commands.store import baseline_manager
from covlens_cli.errors import handle_errors
from covlens_core.sparkline import render as render_sparkline

console = Console()


@click.command("history")
@click.option("--branch", default=None, help="Branch whose baselines to show. Defaults to main_branch.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of snapshots to show.")
@click.option("--from", "start", default=None, help="Commit to walk back from. Defaults to the remote branch head.")
@click.pass_context
@handle_errors
def history_cmd(ctx, branch: str | None, limit: int, start: str | None):
    """Show recorded coverage baselines for a branch, newest first.

    Reads the git notes fetched from the remote. Baselines are recorded by
    `covlens store` or by `covlens run` on pushes to the main branch.
    """
    from covlens_store.noop import NoOpNotesStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpNotesStore):
        raise click.UsageError("Baseline tracking is disabled. Set 'baseline_tracking: true' in .covlens.yml.")

    config = ctx.obj["config"]
    branch = branch or config["main_branch"]
    manager = baseline_manager(store, config, branch)

    if not store.fetch(manager.namespace, force=True):
        console.print(f"[yellow]No baselines recorded for {branch}.[/yellow]")
        return

    entries = manager.collect_history(start or f"{manager.remote}/{branch}", limit)
    if not entries:
        console.print(f"[yellow]No baselines found in the last {limit * 3} commits of {branch}.[/yellow]")
        return

    table = Table(title=f"Coverage History: {branch}", show_header=True, header_style="bold cyan")
    table.add_column("Commit", width=8)
    table.add_column("Coverage", justify="right", width=10)
    table.add_column("Change", justify="right", width=8)
    table.add_column("Recorded At", width=20)

    # Entries are oldest first; the change column compares to the one before.
    rows = []
    previous = None
    for entry in entries:
        try:
            value = float(entry.coverage_percentage)
        except ValueError:
            value = None
        change = ""
        if value is not None and previous is not None:
            diff = value - previous
            style = "green" if diff > 0 else "red" if diff < 0 else "white"
            change = f"[{style}]{diff:+.2f}[/{style}]"
        rows.append((entry, change))
        previous = value if value is not None else previous

    for entry, change in reversed(rows):
        table.add_row(
            entry.commit[:7],
            f"{entry.coverage_percentage}%",
            change,
            entry.timestamp[:19].replace("T", " "),
        )

    console.print(table)

    values = []
    for entry in entries:
        try:
            values.append(float(entry.coverage_percentage))
        except ValueError:
            continue
    trend = render_sparkline(values)
    if trend:
        console.print(f"Trend: {trend}")
