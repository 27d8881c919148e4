"""Tests for building annotations from coverage and diff data."""

from covlens_core.annotations import NO_COVERAGE_MESSAGE, Annotation, annotate_file, build_annotations
from covlens_core.coverage.models import FileCoverage


def _file(name, executable, missing, covered=None):
    executable = set(executable)
    return FileCoverage(
        file_name=name,
        executable_lines=executable,
        missing_lines=sorted(missing),
        covered_line_count=len(executable) - len(missing) if covered is None else covered,
    )


def test_comment_between_missed_lines_is_folded_into_one_annotation():
    # Line 7 is a comment and line 12 is covered.
    coverage = _file("a.ts", {5, 6, 8, 9, 12}, [5, 6, 8, 9])
    annotations = build_annotations([coverage], {"a.ts": list(range(1, 21))})
    assert annotations == [Annotation("a.ts", 5, 9, "Lines 5-9 are not covered by a test")]


def test_single_line_message():
    coverage = _file("src/app.py", {1, 2, 3}, [2])
    annotations = build_annotations([coverage], {"src/app.py": [2]})
    assert annotations == [Annotation("src/app.py", 2, 2, "Line 2 is not covered by a test")]


def test_file_with_zero_coverage_gets_single_annotation_on_line_one():
    coverage = _file("b.py", {3, 4, 10, 11}, [3, 4, 10, 11], covered=0)
    annotations = build_annotations([coverage], {"b.py": [10]})
    assert annotations == [Annotation("b.py", 1, 1, NO_COVERAGE_MESSAGE)]


def test_zero_coverage_short_circuit_ignores_which_lines_changed():
    coverage = _file("b.py", {3, 4}, [3, 4], covered=0)
    # Line 50 is not even executable.
    assert build_annotations([coverage], {"b.py": [50]}) == [Annotation("b.py", 1, 1, NO_COVERAGE_MESSAGE)]


def test_non_executable_changes_are_ignored():
    coverage = _file("c.py", {1, 2, 5}, [5])
    assert build_annotations([coverage], {"c.py": [3, 4]}) == []


def test_covered_changes_produce_nothing():
    coverage = _file("c.py", {1, 2, 3, 4}, [4])
    assert build_annotations([coverage], {"c.py": [1, 2, 3]}) == []


def test_only_the_changed_part_of_a_missed_range_is_reported():
    coverage = _file("d.py", set(range(1, 21)), list(range(5, 16)))
    annotations = build_annotations([coverage], {"d.py": [10, 11, 12, 30]})
    assert [(a.start_line, a.end_line) for a in annotations] == [(10, 12)]


def test_covered_line_splits_annotations():
    coverage = _file("e.py", {1, 2, 3, 4, 5}, [1, 2, 4, 5])
    annotations = build_annotations([coverage], {"e.py": [1, 2, 3, 4, 5]})
    assert [(a.start_line, a.end_line) for a in annotations] == [(1, 2), (4, 5)]


def test_files_missing_from_either_side_are_skipped():
    covered = _file("in_both.py", {1, 2}, [1])
    only_coverage = _file("only_coverage.py", {1}, [1], covered=0)
    annotations = build_annotations(
        [covered, only_coverage],
        {"in_both.py": [1], "only_diff.py": [1, 2, 3]},
    )
    assert [a.path for a in annotations] == ["in_both.py"]


def test_empty_added_lines():
    coverage = _file("f.py", {1}, [1], covered=0)
    assert annotate_file(coverage, []) == []


def test_level_is_carried_onto_annotations():
    coverage = _file("g.py", {1, 2}, [1])
    (annotation,) = annotate_file(coverage, [1], level="failure")
    assert annotation.level == "failure"


def test_output_follows_input_file_order():
    files = [_file("z.py", {1, 2}, [1]), _file("a.py", {1, 2}, [1])]
    annotations = build_annotations(files, {"a.py": [1], "z.py": [1]})
    assert [a.path for a in annotations] == ["z.py", "a.py"]
