"""Markdown coverage report."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from covlens_core.coverage.models import CoverageEntry
from covlens_core.sparkline import render as render_sparkline

logger = logging.getLogger(__name__)

REPORT_MARKER = "<!-- covlens-report -->"


@dataclass
class ReportParams:
    coverage_percentage: str
    total_lines: int
    covered_lines: int
    files_analyzed: int
    annotation_count: int
    files: list[CoverageEntry] = field(default_factory=list)
    coverage_delta: str | None = None  # e.g. "+2.50"
    baseline_percentage: str | None = None
    history: list[float] = field(default_factory=list)  # oldest first


def package_of(entry: CoverageEntry) -> str:
    """Explicit package if the report had one, otherwise the file's directory."""
    if entry.package:
        return entry.package
    directory, sep, _ = entry.file.rpartition("/")
    return directory if sep and directory else "."


def _group_by_package(files: list[CoverageEntry]) -> list[tuple[str, int, int, int]]:
    groups: dict[str, list[CoverageEntry]] = {}
    for entry in files:
        groups.setdefault(package_of(entry), []).append(entry)
    return [
        (pkg, len(entries), sum(e.found for e in entries), sum(e.hit for e in entries))
        for pkg, entries in sorted(groups.items())
    ]


def format_with_delta(current: str, delta: str) -> str:
    """Coverage with an arrowed delta: "85.50% (↑2.50%)"."""
    value = float(delta)
    magnitude = f"{abs(value):.2f}"
    if value > 0:
        return f"{current}% (↑{magnitude}%)"
    if value < 0:
        return f"{current}% (↓{magnitude}%)"
    return f"{current}% ({magnitude}%)"


def _status_emoji(percentage: str) -> str:
    value = float(percentage)
    if value >= 80:
        return "🟢"
    if value >= 60:
        return "🟡"
    return "🔴"


def generate(params: ReportParams) -> str:
    """Build the markdown report for the job summary or PR comment."""
    uncovered = params.total_lines - params.covered_lines

    coverage_display = f"{params.coverage_percentage}%"
    if params.coverage_delta:
        coverage_display = format_with_delta(params.coverage_percentage, params.coverage_delta)

    lines = [f"## {_status_emoji(params.coverage_percentage)} Code Coverage Report", ""]
    lines.append("| Metric | Value |")
    lines.append("| ------ | ----: |")
    lines.append(f"| **Coverage** | {coverage_display} |")
    if params.baseline_percentage:
        lines.append(f"| **Baseline** | {params.baseline_percentage}% |")
    trend = render_sparkline(params.history)
    if trend:
        lines.append(f"| **Trend** | {trend} |")
    lines.append(f"| **Covered Lines** | {params.covered_lines:,} |")
    lines.append(f"| **Uncovered Lines** | {uncovered:,} |")
    lines.append(f"| **Total Lines** | {params.total_lines:,} |")
    lines.append(f"| **Files Analyzed** | {params.files_analyzed:,} |")
    lines.append("")

    if params.annotation_count > 0:
        noun = "annotation" if params.annotation_count == 1 else "annotations"
        lines.append(f"⚠️ **{params.annotation_count} {noun}** added for uncovered lines in this PR.")
    else:
        lines.append("✅ No new uncovered lines detected in this PR.")
    lines.append("")

    lines.append("### Coverage by Package")
    lines.append("")
    lines.append("| Package | Files | Total Lines | Covered | Coverage |")
    lines.append("| ------- | ----: | ----------: | ------: | -------: |")
    for pkg, count, total, covered in _group_by_package(params.files):
        pct = f"{covered / total * 100:.1f}" if total > 0 else "0.0"
        lines.append(f"| {pkg} | {count} | {total:,} | {covered:,} | {pct}% |")

    return "\n".join(lines) + "\n"


def write_step_summary(markdown: str, env: Mapping[str, str] | None = None) -> bool:
    """Append the report to the Actions job summary file, if one is configured."""
    env = os.environ if env is None else env
    path = env.get("GITHUB_STEP_SUMMARY")
    if not path:
        logger.debug("GITHUB_STEP_SUMMARY not set; skipping job summary")
        return False
    with open(path, "a", encoding="utf-8") as f:
        f.write(markdown)
        f.write("\n")
    return True


def write_outputs(values: Mapping[str, object], env: Mapping[str, str] | None = None) -> bool:
    """Append ``key=value`` step outputs to GITHUB_OUTPUT, skipping None values."""
    env = os.environ if env is None else env
    path = env.get("GITHUB_OUTPUT")
    if not path:
        logger.debug("GITHUB_OUTPUT not set; skipping step outputs")
        return False
    with open(path, "a", encoding="utf-8") as f:
        for key, value in values.items():
            if value is not None:
                f.write(f"{key}={value}\n")
    return True
