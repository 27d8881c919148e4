"""Locating and loading coverage reports."""

from __future__ import annotations

import glob
import logging
import os

from covlens_core.coverage import cobertura, gocov, lcov, simplecov
from covlens_core.coverage.merge import correct_totals, merge_by_file
from covlens_core.coverage.models import CoverageEntry, CoverageParseError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("lcov", "cobertura", "go", "simplecov")


def expand_paths(pattern_text: str) -> list[str]:
    """Expand newline-separated paths and glob patterns into matching files.

    ``**`` matches across directories. Directories are never returned and the
    result is sorted so report order does not depend on the filesystem.
    """
    matches: set[str] = set()
    for pattern in pattern_text.splitlines():
        pattern = pattern.strip()
        if not pattern:
            continue
        for match in glob.glob(pattern, recursive=True):
            if os.path.isfile(match):
                matches.add(match)
    return sorted(matches)


def parse_file(path: str, fmt: str, workspace: str | None = None, go_mod: str = "go.mod") -> list[CoverageEntry]:
    if fmt == "lcov":
        return lcov.parse(path, workspace)
    if fmt == "cobertura":
        return cobertura.parse(path, workspace)
    if fmt == "go":
        return gocov.parse(path, go_mod)
    if fmt == "simplecov":
        return simplecov.parse(path, workspace)
    raise ValueError(f"Unknown coverage format: {fmt!r}. Choose one of {', '.join(SUPPORTED_FORMATS)}.")


def load_coverage(
    pattern_text: str,
    fmt: str = "lcov",
    workspace: str | None = None,
    go_mod: str = "go.mod",
) -> list[CoverageEntry]:
    """Parse every report matching ``pattern_text`` and merge them per file."""
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unknown coverage format: {fmt!r}. Choose one of {', '.join(SUPPORTED_FORMATS)}.")

    paths = expand_paths(pattern_text)
    if not paths:
        raise CoverageParseError(f"No coverage files found matching: {pattern_text.strip()}")
    logger.info("Found %d coverage file(s)", len(paths))

    entries: list[CoverageEntry] = []
    for path in paths:
        logger.debug("Parsing %s as %s", path, fmt)
        entries.extend(parse_file(path, fmt, workspace, go_mod))

    return correct_totals(merge_by_file(entries))
