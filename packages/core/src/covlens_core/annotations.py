"""Builds "uncovered lines" annotations for the lines a pull request adds."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from covlens_core.coverage.models import FileCoverage
from covlens_core.ranges import coalesce, intersect

logger = logging.getLogger(__name__)

NO_COVERAGE_MESSAGE = "This file has no test coverage"


@dataclass(frozen=True)
class Annotation:
    path: str
    start_line: int
    end_line: int
    message: str
    level: str = "warning"  # "notice" | "warning" | "failure"


def _message(start: int, end: int) -> str:
    if end > start:
        return f"Lines {start}-{end} are not covered by a test"
    return f"Line {start} is not covered by a test"


def annotate_file(coverage: FileCoverage, added_lines: list[int], level: str = "warning") -> list[Annotation]:
    """Annotations for one file given the raw line numbers the diff added."""
    if not added_lines:
        return []

    # A file nobody tests gets one annotation instead of one per hunk.
    if coverage.missing_lines and coverage.covered_line_count == 0:
        return [Annotation(coverage.file_name, 1, 1, NO_COVERAGE_MESSAGE, level)]

    executable = coverage.executable_lines
    changed = sorted({line for line in added_lines if line in executable})
    if not changed:
        return []

    missing_ranges = coalesce(coverage.missing_lines, executable)
    changed_ranges = coalesce(changed, executable)

    return [
        Annotation(coverage.file_name, r.start, r.end, _message(r.start, r.end), level)
        for r in intersect(missing_ranges, changed_ranges)
    ]


def build_annotations(
    files: list[FileCoverage],
    diff: dict[str, list[int]],
    level: str = "warning",
) -> list[Annotation]:
    """Return annotations for lines that are added, executable and uncovered.

    Files missing from either the coverage data or the diff produce nothing.
    """
    annotations: list[Annotation] = []
    for coverage in files:
        added = diff.get(coverage.file_name)
        if not added:
            continue
        annotations.extend(annotate_file(coverage, added, level))
    logger.info("Annotation count: %d", len(annotations))
    return annotations
