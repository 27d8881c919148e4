"""Publishing annotations: Checks API runs and Actions workflow commands."""

from __future__ import annotations

import logging

from github import GithubException

from covlens_core.annotations import Annotation

logger = logging.getLogger(__name__)

CHECK_RUN_NAME = "covlens"

# The Checks API accepts at most 50 annotations per request.
ANNOTATION_BATCH_LIMIT = 50


def _is_branch_deleted(error: GithubException) -> bool:
    """A 422 mentioning the commit means the PR head is gone (usually merged)."""
    if error.status != 422:
        return False
    data = error.data if isinstance(error.data, dict) else {}
    message = str(data.get("message", "") or error).lower()
    return "no commit found" in message or "sha" in message or "not found" in message


def _to_api(annotation: Annotation) -> dict:
    return {
        "path": annotation.path,
        "start_line": annotation.start_line,
        "end_line": annotation.end_line,
        "annotation_level": annotation.level,
        "message": annotation.message,
    }


def annotate(repo, head_sha: str, annotations: list[Annotation]) -> int:
    """Post annotations as a check run, batching to the API limit.

    The first batch creates the run and later batches extend it; the last
    batch completes it. Returns the number of annotations posted, or -1 if
    the head commit no longer exists.
    """
    if not annotations:
        return 0

    batches = [
        annotations[i : i + ANNOTATION_BATCH_LIMIT] for i in range(0, len(annotations), ANNOTATION_BATCH_LIMIT)
    ]
    check_run = None
    posted = 0
    for idx, batch in enumerate(batches):
        is_last = idx == len(batches) - 1
        output = {
            "title": "Coverage",
            "summary": f"{len(annotations)} uncovered range(s) in changed lines",
            "annotations": [_to_api(a) for a in batch],
        }
        status = {"status": "completed", "conclusion": "success"} if is_last else {"status": "in_progress"}
        try:
            if check_run is None:
                check_run = repo.create_check_run(name=CHECK_RUN_NAME, head_sha=head_sha, output=output, **status)
            else:
                check_run.edit(output=output, **status)
        except GithubException as e:
            if _is_branch_deleted(e):
                logger.warning("PR head %s no longer exists (merged?); skipping annotations", head_sha[:7])
                return -1
            raise
        posted += len(batch)
    return posted


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def workflow_commands(annotations: list[Annotation]) -> list[str]:
    """Render annotations as Actions workflow commands for stdout."""
    commands = []
    for a in annotations:
        props = f"file={_escape_property(a.path)},line={a.start_line},endLine={a.end_line}"
        level = "error" if a.level == "failure" else a.level
        commands.append(f"::{level} {props}::{_escape_data(a.message)}")
    return commands
