"""Tests for mode detection from the Actions environment."""

import json

import pytest

from covlens_core.mode import PR_CHECK, STORE_BASELINE, detect_mode, namespace_for_branch


@pytest.fixture
def pr_event(tmp_path):
    path = tmp_path / "event.json"
    path.write_text(
        json.dumps(
            {
                "pull_request": {
                    "number": 42,
                    "base": {"ref": "main"},
                    "head": {"sha": "abc123"},
                }
            }
        )
    )
    return {"GITHUB_EVENT_NAME": "pull_request", "GITHUB_REF": "refs/pull/42/merge", "GITHUB_EVENT_PATH": str(path)}


def test_pull_request_runs_a_check(pr_event):
    context = detect_mode(env=pr_event)
    assert context.mode == PR_CHECK
    assert context.is_pull_request is True
    assert context.base_branch == "main"
    assert context.pr_number == 42
    assert context.head_sha == "abc123"


@pytest.mark.parametrize(
    "event, ref, base_branch",
    [
        ("push", "refs/heads/main", "main"),
        ("push", "refs/heads/feature", None),
        ("workflow_dispatch", "refs/heads/main", None),
        ("schedule", "refs/heads/main", None),
    ],
)
def test_other_events_store(event, ref, base_branch):
    context = detect_mode(env={"GITHUB_EVENT_NAME": event, "GITHUB_REF": ref})
    assert context.mode == STORE_BASELINE
    assert context.is_pull_request is False
    assert context.base_branch == base_branch


def test_custom_main_branch():
    context = detect_mode(main_branch="develop", env={"GITHUB_EVENT_NAME": "push", "GITHUB_REF": "refs/heads/develop"})
    assert context.base_branch == "develop"


def test_override_wins(pr_event):
    context = detect_mode("store-baseline", env=pr_event)
    assert context.mode == STORE_BASELINE
    assert context.is_pull_request is True
    assert context.base_branch == "main"


def test_invalid_override():
    with pytest.raises(ValueError, match="Invalid mode override"):
        detect_mode("invalid-mode", env={})


def test_missing_event_payload_is_tolerated(tmp_path):
    env = {"GITHUB_EVENT_NAME": "pull_request", "GITHUB_EVENT_PATH": str(tmp_path / "missing.json")}
    context = detect_mode(env=env)
    assert context.mode == PR_CHECK
    assert context.base_branch is None


@pytest.mark.parametrize(
    "branch, expected",
    [
        ("main", "coverage/main"),
        ("release/1.2", "coverage/release-1-2"),
        ("feat_x-y", "coverage/feat_x-y"),
    ],
)
def test_namespace_for_branch(branch, expected):
    assert namespace_for_branch(branch) == expected


def test_namespace_prefix():
    assert namespace_for_branch("main", prefix="cov-web") == "cov-web/main"
