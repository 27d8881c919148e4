"""check command: annotate uncovered changed lines and compare to the baseline."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markdown import Markdown

from covlens_cli.commands.store import baseline_manager, with_overrides
from covlens_cli.errors import handle_errors
from covlens_core.checker import (
    CheckOutcome,
    CoverageResult,
    analyze_coverage,
    build_report,
    deliver_report,
    fetch_pull_diff,
    find_uncovered_changes,
    print_shadow_annotations,
    publish_annotations,
)
from covlens_core.config import ANNOTATION_MODES
from covlens_core.coverage.files import SUPPORTED_FORMATS
from covlens_core.diff import added_lines_by_file, parse_diff
from covlens_core.gh.pull_request import get_pull, get_repo
from covlens_core.summary import write_outputs
from covlens_store.base import BaseNotesStore
from covlens_store.baseline import delta
from covlens_store.models import BaselineStatus

console = Console()


def connect_github(config: dict, repo_name: str | None):
    """PyGithub repository for ``repo_name`` (or GITHUB_REPOSITORY)."""
    from covlens_cli.auth import resolve_github_token

    token = config.get("github_token") or resolve_github_token()
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")
    repo_name = repo_name or config.get("github_repository")
    if not repo_name:
        raise click.UsageError("No repository given. Pass --repo or set GITHUB_REPOSITORY.")
    return get_repo(repo_name, token=token, base_url=config.get("github_api_url"))


def compare_to_baseline(store: BaseNotesStore, config: dict, outcome: CheckOutcome, base_branch: str) -> None:
    """Fill in delta, baseline and history on ``outcome`` when a baseline exists."""
    manager = baseline_manager(store, config, base_branch)
    console.print(f"Loading baseline from namespace: [bold]{manager.namespace}[/bold]")
    result = manager.load(base_branch)

    if result.status is BaselineStatus.PARSE_ERROR:
        console.print(f"[yellow]Baseline note at {result.commit[:8]} is unreadable ({result.parse_error}).[/yellow]")
        return
    if not result.found:
        console.print(f"[dim]No baseline found ({result.status.value}); showing absolute coverage only.[/dim]")
        return

    current = outcome.coverage.coverage_percentage
    baseline = result.snapshot.coverage_percentage
    try:
        outcome.coverage_delta = delta(current, baseline, config.get("delta_precision", 2))
    except ValueError as e:
        console.print(f"[yellow]Ignoring baseline at {result.commit[:8]}: {e}[/yellow]")
        return
    outcome.baseline_percentage = baseline
    console.print(f"Coverage delta: [bold]{outcome.coverage_delta}[/bold] (baseline {baseline}% at {result.commit[:8]})")

    history_count = config.get("history_count", 0)
    if history_count > 0:
        values = []
        for entry in manager.collect_history(result.commit, history_count):
            try:
                values.append(float(entry.coverage_percentage))
            except ValueError:
                continue
        outcome.history = values + [float(current)]


def run_check(
    store: BaseNotesStore,
    config: dict,
    coverage: CoverageResult,
    base_branch: str | None,
    *,
    repo_name: str | None = None,
    pr_number: int | None = None,
    head_sha: str | None = None,
    diff_file: str | None = None,
    shadow: bool = False,
) -> CheckOutcome:
    """Annotate, compare and report for one pull request.

    The diff comes from ``diff_file`` when given, otherwise from GitHub.
    GitHub is only contacted when something actually needs it.
    """
    annotations_mode = config.get("annotations", "workflow")
    needs_github = diff_file is None or (
        not shadow and (annotations_mode == "check-run" or config.get("post_comment"))
    )

    repo = pr = None
    if needs_github:
        if pr_number is None:
            raise click.UsageError("No pull request given. Pass --pr or --diff-file.")
        repo = connect_github(config, repo_name)
        pr = get_pull(repo, pr_number)
        head_sha = head_sha or pr.head.sha

    if diff_file is not None:
        with open(diff_file, encoding="utf-8") as f:
            diff = added_lines_by_file(parse_diff(f.read()))
    else:
        diff = fetch_pull_diff(pr)

    outcome = CheckOutcome(coverage=coverage)
    if config.get("calculate_delta", True) and base_branch:
        compare_to_baseline(store, config, outcome, base_branch)

    outcome.annotations = find_uncovered_changes(coverage, diff, config.get("annotation_level", "warning"))
    outcome.report = build_report(outcome)

    if shadow:
        print_shadow_annotations(outcome.annotations)
        console.print(Markdown(outcome.report))
        return outcome

    published = publish_annotations(outcome.annotations, annotations_mode, repo=repo, head_sha=head_sha)
    console.print(f"[dim]{published} annotation(s) published.[/dim]")
    write_outputs(
        {
            "coverage_percentage": coverage.coverage_percentage,
            "files_analyzed": coverage.files_analyzed,
            "coverage_delta": outcome.coverage_delta,
            "baseline_percentage": outcome.baseline_percentage,
            "annotation_count": len(outcome.annotations),
        }
    )
    deliver_report(outcome.report, config, pr=pr)
    return outcome


@click.command("check")
@click.option("--base", "base_branch", default=None, help="Target branch of the pull request. Defaults to main_branch.")
@click.option(
    "--diff-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Unified diff to check instead of fetching the PR from GitHub.",
)
@click.option("--repo", default=None, help="GitHub repository in owner/name format. Defaults to GITHUB_REPOSITORY.")
@click.option("--pr", "pr_number", type=int, default=None, help="Pull request number.")
@click.option("--sha", "head_sha", default=None, help="Head commit for check-run annotations. Defaults to the PR head.")
@click.option("--coverage-files", default=None, help="Newline-separated coverage paths or globs.")
@click.option(
    "--format",
    "coverage_format",
    type=click.Choice(SUPPORTED_FORMATS),
    default=None,
    help="Coverage report format. Overrides config file.",
)
@click.option(
    "--annotations",
    type=click.Choice(ANNOTATION_MODES),
    default=None,
    help="How to publish annotations. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print annotations and the report without publishing anything.",
)
@click.pass_context
@handle_errors
def check_cmd(
    ctx,
    base_branch: str | None,
    diff_file: str | None,
    repo: str | None,
    pr_number: int | None,
    head_sha: str | None,
    coverage_files: str | None,
    coverage_format: str | None,
    annotations: str | None,
    shadow: bool,
):
    """Find uncovered lines in a pull request's changes.

    Reads the coverage reports, intersects them with the lines the pull
    request adds and reports each uncovered range once. When a baseline for
    the target branch exists, the coverage change is shown alongside.

    \b
    Environment variables:
      GITHUB_TOKEN         Needed unless --diff-file is used (or use gh CLI)
      GITHUB_REPOSITORY    Default for --repo
    """
    config = with_overrides(
        ctx.obj["config"],
        coverage_files=coverage_files,
        coverage_format=coverage_format,
        annotations=annotations,
    )
    coverage = analyze_coverage(config)
    run_check(
        ctx.obj["store"],
        config,
        coverage,
        base_branch or config["main_branch"],
        repo_name=repo,
        pr_number=pr_number,
        head_sha=head_sha,
        diff_file=diff_file,
        shadow=shadow,
    )
