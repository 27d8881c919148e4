"""Core coverage check orchestration.

Everything here works on already-loaded data or on GitHub; nothing touches
the baseline store. The CLI combines these steps with covlens_store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from github import GithubException
from rich.console import Console

from covlens_core.annotations import Annotation, build_annotations
from covlens_core.coverage.files import load_coverage
from covlens_core.coverage.merge import filter_by_file, totals
from covlens_core.coverage.models import CoverageEntry
from covlens_core.gh.checks import annotate, workflow_commands
from covlens_core.gh.pull_request import get_pull_diff, upsert_comment
from covlens_core.summary import ReportParams, generate, write_step_summary

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class CoverageResult:
    """Parsed and merged coverage for the whole run."""

    entries: list[CoverageEntry]
    total_lines: int
    covered_lines: int
    coverage_percentage: str

    @property
    def files_analyzed(self) -> int:
        return len(self.entries)


@dataclass
class CheckOutcome:
    """Everything a pr-check run produced, for reporting and tests."""

    coverage: CoverageResult
    annotations: list[Annotation] = field(default_factory=list)
    coverage_delta: str | None = None
    baseline_percentage: str | None = None
    history: list[float] = field(default_factory=list)
    report: str = ""


def analyze_coverage(config: dict) -> CoverageResult:
    """Load the configured coverage reports and compute overall totals."""
    entries = load_coverage(
        config["coverage_files"],
        fmt=config["coverage_format"],
        workspace=config.get("workspace"),
        go_mod=config.get("go_mod", "go.mod"),
    )
    total, covered, pct = totals(entries)
    console.print(
        f"Parsed {len(entries)} file(s). Total lines: {total:,}. Covered lines: {covered:,}. Coverage: {pct}%"
    )
    return CoverageResult(entries=entries, total_lines=total, covered_lines=covered, coverage_percentage=pct)


def find_uncovered_changes(coverage: CoverageResult, diff: dict[str, list[int]], level: str = "warning") -> list[Annotation]:
    """Annotations for added lines that coverage reports as missed."""
    files = filter_by_file(coverage.entries)
    in_diff = [f for f in files if f.file_name in diff]
    logger.debug("%d of %d covered file(s) appear in the diff", len(in_diff), len(files))
    for f in in_diff:
        logger.debug(
            "coverage %s: missing=%s covered=%d",
            f.file_name,
            f.missing_lines,
            f.covered_line_count,
        )
    return build_annotations(files, diff, level=level)


def fetch_pull_diff(pr) -> dict[str, list[int]]:
    try:
        return get_pull_diff(pr)
    except GithubException as e:
        raise ValueError(f"Could not fetch the pull request diff: {e}") from e


def print_shadow_annotations(annotations: list[Annotation]) -> None:
    """Print annotations to the terminal without posting anything."""
    _level_color = {"failure": "red", "warning": "yellow", "notice": "blue"}
    if not annotations:
        console.print("[green]No uncovered changed lines.[/green]")
        return
    console.print(f"\n[bold]{len(annotations)} uncovered range(s) in changed lines (not posted)[/bold]\n")
    for a in annotations:
        color = _level_color.get(a.level, "white")
        span = f"line {a.start_line}" if a.start_line == a.end_line else f"lines {a.start_line}-{a.end_line}"
        console.print(f"[bold cyan]{a.path}[/bold cyan]  {span}  [{color}]{a.message}[/{color}]")


def publish_annotations(annotations: list[Annotation], mode: str, repo=None, head_sha: str | None = None) -> int:
    """Emit annotations the configured way; returns how many were published."""
    if mode == "none" or not annotations:
        return 0
    if mode == "check-run":
        if repo is None or not head_sha:
            raise ValueError("check-run annotations need a GitHub repository and head SHA")
        posted = annotate(repo, head_sha, annotations)
        if posted < 0:
            console.print("[yellow]PR head no longer exists (merged?). Skipped annotations.[/yellow]")
            return 0
        return posted
    # Workflow commands must reach stdout verbatim for the runner to pick them up.
    for command in workflow_commands(annotations):
        print(command)
    return len(annotations)


def build_report(outcome: CheckOutcome) -> str:
    return generate(
        ReportParams(
            coverage_percentage=outcome.coverage.coverage_percentage,
            total_lines=outcome.coverage.total_lines,
            covered_lines=outcome.coverage.covered_lines,
            files_analyzed=outcome.coverage.files_analyzed,
            annotation_count=len(outcome.annotations),
            files=outcome.coverage.entries,
            coverage_delta=outcome.coverage_delta,
            baseline_percentage=outcome.baseline_percentage,
            history=outcome.history,
        )
    )


def deliver_report(report: str, config: dict, pr=None) -> None:
    """Write the report to the job summary and, if configured, the PR."""
    if config.get("step_summary", True) and write_step_summary(report):
        console.print("[dim]Job summary written.[/dim]")
    if config.get("post_comment") and pr is not None:
        action = upsert_comment(pr, report)
        console.print(f"[dim]Coverage comment {action}.[/dim]")
