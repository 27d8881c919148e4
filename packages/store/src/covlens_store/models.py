"""Baseline data models.

Decoupled from covlens_core so the store layer can be used on its own and
covlens_core has no knowledge of persistence.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True)
class Snapshot:
    """Coverage recorded for one commit. Never modified once written."""

    timestamp: str  # ISO-8601 UTC timestamp
    coverage_percentage: str  # decimal string, e.g. "85.50"
    total_lines: int
    covered_lines: int
    commit: str


@dataclass(frozen=True)
class HistoryEntry:
    """One point of the coverage trend."""

    commit: str
    coverage_percentage: str
    timestamp: str


class BaselineStatus(str, enum.Enum):
    FOUND = "found"
    NO_HISTORY = "no-history"  # the remote has no notes ref for the namespace
    NO_MERGE_BASE = "no-merge-base"
    NO_BASELINE = "no-baseline"  # merge-base and lookback window hold nothing
    PARSE_ERROR = "parse-error"  # a note exists but is not a valid snapshot


@dataclass
class BaselineResult:
    status: BaselineStatus
    snapshot: Snapshot | None = None
    commit: str | None = None  # where the snapshot or parse error was found, else the merge-base
    searched_commits: int = 0
    parse_error: str | None = None

    @property
    def found(self) -> bool:
        return self.status is BaselineStatus.FOUND
