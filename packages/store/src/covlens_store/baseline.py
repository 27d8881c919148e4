"""Coverage baselines: recording snapshots and finding one to compare against.

Snapshots are stored one JSON object per line, newest first; only the first
line is read. A pull request is compared against the snapshot on its
merge-base with the target branch, or failing that the nearest ancestor of
the merge-base that has one, up to ``max_lookback`` commits back.

Loading outcomes (see BaselineStatus):

    fetch ──no ref──────────────────────────────► NO_HISTORY
      │
    merge-base ──none───────────────────────────► NO_MERGE_BASE
      │
    read merge-base ──snapshot──────────────────► FOUND
      │            └──unparseable──────────────► PARSE_ERROR
      │ nothing
    walk ancestors ──first snapshot────────────► FOUND
                   ├──first unparseable note───► PARSE_ERROR
                   └──exhausted────────────────► NO_BASELINE

A corrupt note stops the walk instead of being skipped, so stale or broken
data is reported rather than silently replaced by an older baseline.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from covlens_store.base import DEFAULT_MAX_RETRIES, BaseNotesStore
from covlens_store.models import BaselineResult, BaselineStatus, HistoryEntry, Snapshot
from covlens_store.retry import write_and_push

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOOKBACK = 50


def format_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(
        {
            "timestamp": snapshot.timestamp,
            "coveragePercentage": snapshot.coverage_percentage,
            "totalLines": snapshot.total_lines,
            "coveredLines": snapshot.covered_lines,
            "commit": snapshot.commit,
        },
        separators=(",", ":"),
    )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_snapshot(content: str | None) -> Snapshot | None:
    """Parse the first line of a note; None if it is empty or not a snapshot."""
    if not content:
        return None
    first_line = content.split("\n", 1)[0].strip()
    if not first_line:
        return None
    try:
        data = json.loads(first_line)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    if not (
        isinstance(data.get("coveragePercentage"), str)
        and _is_int(data.get("totalLines"))
        and _is_int(data.get("coveredLines"))
    ):
        return None
    return Snapshot(
        timestamp=str(data.get("timestamp", "")),
        coverage_percentage=data["coveragePercentage"],
        total_lines=data["totalLines"],
        covered_lines=data["coveredLines"],
        commit=str(data.get("commit", "")),
    )


def delta(current: str, baseline: str, precision: int = 2) -> str:
    """Signed difference of two percentage strings: "+2.50", "-1.25", "+0.00".

    Decimal arithmetic keeps "85.555" - "83.333" exact; zero is always "+".
    """
    try:
        diff = Decimal(current) - Decimal(baseline)
    except InvalidOperation as e:
        raise ValueError(f"Invalid coverage percentage: {current!r} or {baseline!r}") from e
    quantum = Decimal(1).scaleb(-precision)
    rounded = diff.quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:+.{precision}f}"


class BaselineManager:
    """Records and loads snapshots for one namespace.

    The namespace is fixed per manager and passed explicitly to every store
    call, so two managers over the same store never share state.
    """

    def __init__(
        self,
        store: BaseNotesStore,
        namespace: str,
        max_lookback: int = DEFAULT_MAX_LOOKBACK,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = 1.0,
        remote: str = "origin",
    ):
        self._store = store
        self.namespace = namespace
        self.max_lookback = max_lookback
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.remote = remote

    def store_snapshot(
        self,
        coverage_percentage: str,
        total_lines: int,
        covered_lines: int,
        commit: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Record coverage for ``commit`` (HEAD by default) and push it.

        Returns False if concurrent writers kept winning the push. Whether
        that is tolerable is up to the caller.
        """
        commit = commit or self._store.head_commit()
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        snapshot = Snapshot(
            timestamp=timestamp,
            coverage_percentage=coverage_percentage,
            total_lines=total_lines,
            covered_lines=covered_lines,
            commit=commit,
        )
        logger.info("Storing baseline coverage %s%% for %s in %s", coverage_percentage, commit[:8], self.namespace)
        ok = write_and_push(
            self._store,
            commit,
            format_snapshot(snapshot),
            self.namespace,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
        )
        if not ok:
            logger.warning("Failed to push coverage baseline after %d attempts", self.max_retries)
        return ok

    def _try_read(self, commit: str, searched: int) -> BaselineResult | None:
        """FOUND or PARSE_ERROR for ``commit``, or None if it has no note."""
        content = self._store.read(commit, self.namespace)
        if not content:
            return None
        snapshot = parse_snapshot(content)
        if snapshot is None:
            logger.warning("Failed to parse baseline at %s", commit[:8])
            return BaselineResult(
                status=BaselineStatus.PARSE_ERROR,
                commit=commit,
                searched_commits=searched,
                parse_error="Invalid format",
            )
        return BaselineResult(status=BaselineStatus.FOUND, snapshot=snapshot, commit=commit, searched_commits=searched)

    def load(self, target_branch: str) -> BaselineResult:
        """Find the snapshot to compare the current HEAD against."""
        if not self._store.fetch(self.namespace, force=True):
            logger.info("No coverage notes found in %s for %s", self.remote, self.namespace)
            return BaselineResult(status=BaselineStatus.NO_HISTORY)

        target_ref = f"{self.remote}/{target_branch}"
        merge_base = self._store.merge_base(target_ref)
        if not merge_base:
            logger.info("No merge-base found with %s", target_ref)
            return BaselineResult(status=BaselineStatus.NO_MERGE_BASE)
        logger.info("Found merge-base: %s", merge_base[:8])

        result = self._try_read(merge_base, searched=1)
        if result is not None:
            return result

        if self.max_lookback <= 0:
            logger.info("No baseline coverage found for merge-base commit")
            return BaselineResult(status=BaselineStatus.NO_BASELINE, commit=merge_base, searched_commits=1)

        logger.info("Searching up to %d ancestors for a baseline", self.max_lookback)
        # The walk starts at the merge-base itself, already checked above.
        ancestors = self._store.list_ancestors(merge_base, self.max_lookback + 1)
        for distance, commit in enumerate(ancestors[1:], start=1):
            result = self._try_read(commit, searched=distance + 1)
            if result is not None:
                if result.found:
                    logger.info("Found baseline at ancestor %s (%d commits back)", commit[:8], distance)
                return result

        searched = max(len(ancestors), 1)
        logger.info("No baseline found in %d commit(s)", searched)
        return BaselineResult(status=BaselineStatus.NO_BASELINE, commit=merge_base, searched_commits=searched)

    def collect_history(self, start_commit: str, count: int) -> list[HistoryEntry]:
        """Up to ``count`` snapshots reachable from ``start_commit``, oldest first.

        Walks three times as many commits as requested, since not every
        commit has a snapshot. Unreadable notes are skipped here; history is
        decoration, not a comparison.
        """
        if count <= 0:
            return []

        entries: list[HistoryEntry] = []
        for commit in self._store.list_ancestors(start_commit, count * 3):
            if len(entries) >= count:
                break
            snapshot = parse_snapshot(self._store.read(commit, self.namespace))
            if snapshot is None:
                continue
            entries.append(
                HistoryEntry(commit=commit, coverage_percentage=snapshot.coverage_percentage, timestamp=snapshot.timestamp)
            )

        # list_ancestors() is newest first.
        entries.reverse()
        return entries
