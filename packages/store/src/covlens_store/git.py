"""GitNotesStore: coverage history in git notes, shared through the remote.

Why git notes:
- Zero infra: the repository already exists and CI already has push access.
- Commit-addressed: a note hangs off the exact commit it describes, so
  finding the baseline for a PR is a merge-base lookup, not a search.
- Namespaced: each ``refs/notes/<namespace>`` ref is an independent log,
  so branches and sub-projects never see each other's data.

The remote accepts only fast-forward updates of a notes ref. Concurrent CI
runs therefore conflict on push; see covlens_store.retry for the protocol
that resolves this.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Callable

from covlens_store.base import DEFAULT_MAX_RETRIES, BaseNotesStore, notes_ref
from covlens_store.errors import GitCommandError, GitTimeoutError, NoteExistsError

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 1.0


class GitNotesStore(BaseNotesStore):
    """Runs the ``git`` executable in ``cwd`` against remote ``remote``.

    ``timeout`` bounds every git invocation; a timed-out command raises
    GitTimeoutError, which the retry logic treats as a conflict.
    """

    def __init__(
        self,
        cwd: str | None = None,
        remote: str = "origin",
        timeout: float | None = None,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._cwd = cwd
        self._remote = remote
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._sleep = sleep

    def run(self, args: list[str], input: str | None = None) -> str:
        """Run ``git <args>`` and return stdout; raise GitCommandError on failure."""
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self._cwd,
                input=input,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            raise GitTimeoutError(args, self._timeout or 0)
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, stderr=result.stderr, stdout=result.stdout)
        return result.stdout

    def fetch(self, namespace: str, force: bool = False) -> bool:
        ref = notes_ref(namespace)
        refspec = f"+{ref}:{ref}" if force else f"{ref}:{ref}"
        try:
            self.run(["fetch", self._remote, refspec])
        except GitCommandError as e:
            if e.is_missing_remote_ref:
                logger.debug("Remote has no %s yet", ref)
                return False
            raise
        return True

    def read(self, commit: str, namespace: str) -> str | None:
        try:
            return self.run(["notes", "--ref", notes_ref(namespace), "show", commit]).strip()
        except GitCommandError as e:
            if e.is_missing_note:
                return None
            raise

    def write(self, commit: str, content: str, namespace: str, force: bool = False) -> None:
        args = ["notes", "--ref", notes_ref(namespace), "add"]
        if force:
            args.append("-f")
        # Content goes through stdin so multi-line logs survive intact.
        args += ["-F", "-", commit]
        try:
            self.run(args, input=content)
        except GitCommandError as e:
            if not force and "existing notes" in e.stderr.lower():
                raise NoteExistsError(commit, namespace) from e
            raise

    def push(self, namespace: str, max_retries: int = DEFAULT_MAX_RETRIES) -> bool:
        """Push the namespace ref, retrying timed-out pushes with a growing delay.

        Local notes are never discarded here. A rejection caused by another
        writer cannot clear until the caller refetches and rewrites, so it
        returns False at once; write_and_push() does that refetch around
        single-attempt pushes.
        """
        ref = notes_ref(namespace)
        for attempt in range(1, max_retries + 1):
            try:
                self.run(["push", self._remote, ref])
                return True
            except GitTimeoutError as e:
                if attempt == max_retries:
                    logger.warning("Push of %s timed out after %d attempt(s)", ref, attempt)
                    return False
                logger.info("Push of %s timed out after %ss (attempt %d/%d); retrying", ref, e.timeout, attempt, max_retries)
                self._sleep(self._retry_delay * attempt)
            except GitCommandError as e:
                if not e.is_conflict:
                    raise
                logger.warning("Push of %s rejected: %s", ref, e.stderr.strip())
                return False
        return False

    def head_commit(self) -> str:
        return self.run(["rev-parse", "HEAD"]).strip()

    def merge_base(self, target_ref: str) -> str | None:
        try:
            return self.run(["merge-base", "HEAD", target_ref]).strip() or None
        except GitCommandError as e:
            # Exit 1 with no output: the histories share no commit.
            if e.returncode == 1 and not e.stderr.strip():
                return None
            if e.is_bad_object:
                logger.info("%s is not available locally (shallow or unfetched clone?)", target_ref)
                return None
            raise

    def list_ancestors(self, commit: str, count: int) -> list[str]:
        if count <= 0:
            return []
        output = self.run(["rev-list", f"--max-count={count}", commit])
        return [line.strip() for line in output.splitlines() if line.strip()]
