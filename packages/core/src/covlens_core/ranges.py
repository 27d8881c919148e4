"""Line-range coalescing and intersection.

Everything here is pure: functions take sorted line numbers or range lists
and build fresh lists. Ranges are never mutated after construction, so the
outputs can be shared freely between callers.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple

# Gaps wider than this many lines are assumed to span unrelated code and are
# never bridged, even when every line in between is non-executable.
MAX_BRIDGE_GAP = 5


class LineRange(NamedTuple):
    """Inclusive, 1-based range of source lines."""

    start: int
    end: int


def can_bridge_gap(start: int, end: int, executable: set[int]) -> bool:
    """Return True if no line strictly between start and end is executable.

    An executable line inside the gap is one the coverage tool instrumented
    and that is absent from the input, i.e. covered. Folding it into an
    uncovered range would misreport it.
    """
    return not any(line in executable for line in range(start + 1, end))


def coalesce(lines: list[int], executable: set[int] | None = None) -> list[LineRange]:
    """Merge sorted, distinct line numbers into contiguous ranges.

    Without ``executable`` only consecutive numbers merge. With it, a gap of
    up to MAX_BRIDGE_GAP lines is bridged when none of the gap lines is
    executable (comments, blank lines, closing braces).
    """
    if not lines:
        return []

    ranges: list[LineRange] = []
    start = end = lines[0]

    for previous, current in zip(lines, lines[1:]):
        gap = current - previous
        if gap == 1:
            end = current
        elif executable is not None and gap <= MAX_BRIDGE_GAP + 1 and can_bridge_gap(previous, current, executable):
            end = current
        else:
            ranges.append(LineRange(start, end))
            start = end = current

    ranges.append(LineRange(start, end))
    return ranges


def intersect(a: list[LineRange], b: list[LineRange]) -> list[LineRange]:
    """Intersect two sorted, disjoint range lists in a single sweep."""
    result: list[LineRange] = []
    i = j = 0

    while i < len(a) and j < len(b):
        left, right = a[i], b[j]
        if left.end < right.start:
            i += 1
        elif right.end < left.start:
            j += 1
        else:
            result.append(LineRange(max(left.start, right.start), min(left.end, right.end)))
            # Advance whichever range ends first; the other may still overlap
            # the next range on the opposite side.
            if left.end < right.end:
                i += 1
            else:
                j += 1

    return result


def flatten(ranges: Iterable[LineRange]) -> list[int]:
    """Expand ranges back into the line numbers they cover."""
    return [line for r in ranges for line in range(r.start, r.end + 1)]
