"""Tests for the coverage check orchestration helpers."""

from unittest.mock import MagicMock

import pytest
from github import GithubException

from covlens_core.annotations import Annotation
from covlens_core.checker import (
    CheckOutcome,
    CoverageResult,
    analyze_coverage,
    build_report,
    deliver_report,
    fetch_pull_diff,
    find_uncovered_changes,
    publish_annotations,
)
from covlens_core.coverage.models import CoverageEntry, LineDetail


def _coverage():
    entry = CoverageEntry(
        file="src/a.py",
        found=4,
        hit=2,
        details=[LineDetail(1, 1), LineDetail(2, 0), LineDetail(3, 0), LineDetail(4, 1)],
    )
    return CoverageResult(entries=[entry], total_lines=4, covered_lines=2, coverage_percentage="50.00")


def test_analyze_coverage_reads_configured_reports(tmp_path):
    report = tmp_path / "lcov.info"
    report.write_text("SF:src/a.py\nDA:1,1\nDA:2,0\nend_of_record\n")
    config = {"coverage_files": str(report), "coverage_format": "lcov", "workspace": None}

    result = analyze_coverage(config)

    assert result.total_lines == 2
    assert result.covered_lines == 1
    assert result.coverage_percentage == "50.00"
    assert result.files_analyzed == 1


def test_find_uncovered_changes():
    annotations = find_uncovered_changes(_coverage(), {"src/a.py": [2, 3, 4]})
    assert annotations == [Annotation("src/a.py", 2, 3, "Lines 2-3 are not covered by a test")]


def test_fetch_pull_diff_wraps_github_errors():
    pr = MagicMock()
    pr.get_files.side_effect = GithubException(404, {"message": "Not Found"}, None)
    with pytest.raises(ValueError, match="pull request diff"):
        fetch_pull_diff(pr)


class TestPublishAnnotations:
    def test_workflow_commands_go_to_stdout(self, capsys):
        annotations = [Annotation("a.py", 1, 1, "Line 1 is not covered by a test")]
        assert publish_annotations(annotations, "workflow") == 1
        assert "::warning file=a.py,line=1,endLine=1::Line 1 is not covered by a test" in capsys.readouterr().out

    def test_none_mode_publishes_nothing(self, capsys):
        assert publish_annotations([Annotation("a.py", 1, 1, "m")], "none") == 0
        assert "::warning" not in capsys.readouterr().out

    def test_check_run_requires_repo_and_sha(self):
        with pytest.raises(ValueError):
            publish_annotations([Annotation("a.py", 1, 1, "m")], "check-run")

    def test_check_run_posts_through_checks_api(self, mocker):
        mock_annotate = mocker.patch("covlens_core.checker.annotate", return_value=1)
        repo = MagicMock()
        annotations = [Annotation("a.py", 1, 1, "m")]
        assert publish_annotations(annotations, "check-run", repo=repo, head_sha="abc") == 1
        mock_annotate.assert_called_once_with(repo, "abc", annotations)

    def test_deleted_head_counts_as_nothing_posted(self, mocker):
        mocker.patch("covlens_core.checker.annotate", return_value=-1)
        assert publish_annotations([Annotation("a.py", 1, 1, "m")], "check-run", repo=MagicMock(), head_sha="abc") == 0


def test_build_report_includes_delta():
    outcome = CheckOutcome(coverage=_coverage(), coverage_delta="-2.00", baseline_percentage="52.00")
    report = build_report(outcome)
    assert "50.00% (↓2.00%)" in report
    assert "| **Baseline** | 52.00% |" in report


class TestDeliverReport:
    def test_writes_step_summary(self, tmp_path, monkeypatch):
        path = tmp_path / "summary.md"
        monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(path))
        deliver_report("## Report", {"step_summary": True})
        assert "## Report" in path.read_text()

    def test_step_summary_can_be_disabled(self, tmp_path, monkeypatch):
        path = tmp_path / "summary.md"
        monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(path))
        deliver_report("## Report", {"step_summary": False})
        assert not path.exists()

    def test_posts_comment_when_enabled(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
        mock_upsert = mocker.patch("covlens_core.checker.upsert_comment", return_value="created")
        pr = MagicMock()
        deliver_report("## Report", {"post_comment": True}, pr=pr)
        mock_upsert.assert_called_once_with(pr, "## Report")

    def test_no_comment_by_default(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
        mock_upsert = mocker.patch("covlens_core.checker.upsert_comment")
        deliver_report("## Report", {}, pr=MagicMock())
        mock_upsert.assert_not_called()
