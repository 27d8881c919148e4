"""Coverage data models shared by every parser.

Parsers produce CoverageEntry records (one per source file per report).
After merging, entries are reduced to FileCoverage, the per-file view the
annotation engine works on.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class CoverageParseError(Exception):
    """A coverage report could not be read or contained no usable data."""


@dataclass(frozen=True)
class LineDetail:
    """Hit count for one instrumented line."""

    line: int
    hit: int


@dataclass
class CoverageEntry:
    """Coverage for a single file as reported by one coverage report.

    ``found``/``hit`` are the report's own totals. When ``details`` is empty
    (some tools only emit totals) those totals are all we have, so they are
    preserved through merging.
    """

    file: str
    title: str = ""
    package: str | None = None
    found: int = 0
    hit: int = 0
    details: list[LineDetail] = field(default_factory=list)


@dataclass
class FileCoverage:
    """Per-file coverage view used for annotating a pull request."""

    file_name: str
    executable_lines: set[int] = field(default_factory=set)
    missing_lines: list[int] = field(default_factory=list)  # sorted, subset of executable_lines
    covered_line_count: int = 0
