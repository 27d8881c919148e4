from __future__ import annotations

from github import Github

from covlens_core.diff import parse_patch
from covlens_core.summary import REPORT_MARKER


def get_repo(repo_name: str, token: str, base_url: str | None = None):
    if base_url:
        return Github(token, base_url=base_url).get_repo(repo_name)
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_files(pr):
    return pr.get_files()


def get_pull_diff(pr) -> dict[str, list[int]]:
    """Return the raw added line numbers of every file in the PR.

    Binary files and renames without content changes have no patch and map to
    an empty list.
    """
    diff: dict[str, list[int]] = {}
    for f in get_pull_files(pr):
        if f.filename is None:
            continue
        diff[f.filename] = parse_patch(f.filename, f.patch or "").added_lines
    return diff


def upsert_comment(pr, body: str) -> str:
    """Update the covlens report comment on the PR, or create it.

    Returns "updated" or "created".
    """
    marked = f"{body}\n{REPORT_MARKER}"
    for comment in pr.get_issue_comments():
        if REPORT_MARKER in (comment.body or ""):
            comment.edit(marked)
            return "updated"
    pr.create_issue_comment(marked)
    return "created"
