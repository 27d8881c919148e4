"""Tests for range coalescing and intersection: the heart of annotation placement."""

import pytest

from covlens_core.ranges import MAX_BRIDGE_GAP, LineRange, can_bridge_gap, coalesce, flatten, intersect


def test_empty_input():
    assert coalesce([]) == []
    assert coalesce([], {1, 2}) == []


def test_single_line_is_a_point_range():
    assert coalesce([7]) == [LineRange(7, 7)]


def test_consecutive_lines_merge_without_executable_set():
    assert coalesce([1, 2, 3, 5, 6, 9]) == [LineRange(1, 3), LineRange(5, 6), LineRange(9, 9)]


def test_gap_not_bridged_without_executable_set():
    # Line 12 could be anything; without executable data only adjacency merges.
    assert coalesce([10, 11, 13, 14]) == [LineRange(10, 11), LineRange(13, 14)]


def test_gap_of_non_executable_lines_is_bridged():
    assert coalesce([10, 11, 13, 14], {10, 11, 13, 14}) == [LineRange(10, 14)]


def test_gap_containing_covered_line_is_not_bridged():
    # 12 is executable but not in the input, so it is covered.
    assert coalesce([10, 11, 13, 14], {10, 11, 12, 13, 14}) == [LineRange(10, 11), LineRange(13, 14)]


def test_gap_beyond_cap_is_never_bridged():
    assert coalesce([1, 2, 10, 11], {1, 2, 10, 11}) == [LineRange(1, 2), LineRange(10, 11)]


def test_largest_bridgeable_gap():
    last = 1 + MAX_BRIDGE_GAP + 1
    assert coalesce([1, last], {1, last}) == [LineRange(1, last)]
    assert coalesce([1, last + 1], {1, last + 1}) == [LineRange(1, 1), LineRange(last + 1, last + 1)]


def test_can_bridge_gap():
    assert can_bridge_gap(10, 13, {10, 13}) is True
    assert can_bridge_gap(10, 13, {10, 11, 13}) is False
    # Adjacent lines have nothing in between.
    assert can_bridge_gap(4, 5, {4, 5}) is True


@pytest.mark.parametrize(
    "lines, executable",
    [
        ([1, 2, 3, 7, 8, 20], None),
        ([1, 3, 5, 9, 30, 31], {1, 3, 5, 9, 30, 31}),
        ([2, 4, 6, 8], {2, 3, 4, 6, 8}),
    ],
)
def test_coalesce_is_idempotent(lines, executable):
    once = coalesce(lines, executable)
    twice = coalesce(flatten(once), executable)
    assert flatten(twice) == flatten(once)


def test_intersection():
    a = [LineRange(1, 4), LineRange(7, 9), LineRange(132, 132), LineRange(134, 136)]
    b = [LineRange(2, 3), LineRange(5, 7), LineRange(9, 11), LineRange(132, 139)]
    assert intersect(a, b) == [
        LineRange(2, 3),
        LineRange(7, 7),
        LineRange(9, 9),
        LineRange(132, 132),
        LineRange(134, 136),
    ]


def test_intersection_is_symmetric():
    a = [LineRange(1, 10), LineRange(20, 25)]
    b = [LineRange(5, 22)]
    assert intersect(a, b) == intersect(b, a) == [LineRange(5, 10), LineRange(20, 22)]


def test_intersection_with_empty_side():
    assert intersect([], [LineRange(1, 5)]) == []
    assert intersect([LineRange(1, 5)], []) == []


def test_disjoint_ranges_do_not_intersect():
    assert intersect([LineRange(1, 3)], [LineRange(4, 8)]) == []


def test_flatten():
    assert flatten([LineRange(1, 3), LineRange(6, 6)]) == [1, 2, 3, 6]
