"""CLI entry point for covlens.

Commands:
  run       detect the mode from the Actions event and do the right thing
  check     annotate a pull request's uncovered lines and compare to baseline
  store     record the current coverage as the baseline for a branch
  history   show recorded baselines and the coverage trend for a branch
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from covlens_cli.commands.check import check_cmd
from covlens_cli.commands.history import history_cmd
from covlens_cli.commands.run import run_cmd
from covlens_cli.commands.store import store_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the notes store from config.

    baseline_tracking: true  → GitNotesStore on the workspace checkout
    baseline_tracking: false → NoOpNotesStore (no history, nothing recorded)

    This factory lives in cli.py so neither covlens_core nor covlens_store
    know about the config format.
    """
    from covlens_store.noop import NoOpNotesStore

    if not config.get("baseline_tracking", True):
        return NoOpNotesStore()

    from covlens_store.git import GitNotesStore

    return GitNotesStore(
        cwd=config.get("workspace"),
        remote=config.get("remote", "origin"),
        timeout=config.get("git_timeout"),
        retry_delay=config.get("retry_delay", 1.0),
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("covlens"),
    prog_name="covlens",
)
@click.option(
    "--config",
    "config_path",
    default=".covlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COVLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Annotate pull requests with uncovered lines and track coverage over time."""
    from covlens_core.config import load_config

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except (ValueError, OSError) as e:
        raise click.UsageError(f"Invalid configuration: {e}")

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(run_cmd)
main.add_command(check_cmd)
main.add_command(store_cmd)
main.add_command(history_cmd)
