"""Operating mode detection from the GitHub Actions environment.

- ``pr-check``: a pull request run. Compare against the baseline of the
  target branch and annotate uncovered added lines.
- ``store-baseline``: a push run. On the main branch, record the current
  coverage as the baseline for later pull requests.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PR_CHECK = "pr-check"
STORE_BASELINE = "store-baseline"
MODES = (PR_CHECK, STORE_BASELINE)

_UNSAFE_REF_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass
class ModeContext:
    mode: str
    event_name: str
    ref: str
    is_pull_request: bool
    base_branch: str | None = None
    pr_number: int | None = None
    head_sha: str | None = None


def _load_event(env: Mapping[str, str]) -> dict:
    path = env.get("GITHUB_EVENT_PATH")
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f) or {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read event payload %s: %s", path, e)
        return {}


def detect_mode(
    override: str | None = None,
    main_branch: str = "main",
    env: Mapping[str, str] | None = None,
) -> ModeContext:
    """Work out what this run should do.

    An explicit ``override`` wins; otherwise pull_request events check and
    everything else stores (a base branch is only set for pushes to
    ``main_branch``, so other pushes store nothing).
    """
    env = os.environ if env is None else env
    event_name = env.get("GITHUB_EVENT_NAME", "")
    ref = env.get("GITHUB_REF", "")
    is_pull_request = event_name == "pull_request"

    pr_number = head_sha = base_branch = None
    if is_pull_request:
        pull_request = _load_event(env).get("pull_request") or {}
        base_branch = (pull_request.get("base") or {}).get("ref")
        head_sha = (pull_request.get("head") or {}).get("sha")
        pr_number = pull_request.get("number")

    if override:
        if override not in MODES:
            raise ValueError(f"Invalid mode override: {override!r}. Must be 'pr-check' or 'store-baseline'.")
        return ModeContext(
            mode=override,
            event_name=event_name,
            ref=ref,
            is_pull_request=is_pull_request,
            base_branch=base_branch,
            pr_number=pr_number,
            head_sha=head_sha,
        )

    if is_pull_request:
        return ModeContext(
            mode=PR_CHECK,
            event_name=event_name,
            ref=ref,
            is_pull_request=True,
            base_branch=base_branch,
            pr_number=pr_number,
            head_sha=head_sha,
        )

    is_push_to_main = event_name == "push" and ref in (f"refs/heads/{main_branch}", main_branch)
    return ModeContext(
        mode=STORE_BASELINE,
        event_name=event_name,
        ref=ref,
        is_pull_request=False,
        base_branch=main_branch if is_push_to_main else None,
    )


def namespace_for_branch(branch: str, prefix: str = "coverage") -> str:
    """Notes namespace for a branch, so each branch keeps its own baselines."""
    return f"{prefix}/{_UNSAFE_REF_CHARS.sub('-', branch)}"
