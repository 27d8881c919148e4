"""Notes store error types.

Only conditions a caller cannot act on are raised. "No note", "no remote
ref" and "no merge base" are returned as None/False by the store; a rejected
or timed-out push surfaces as False.
"""

from __future__ import annotations

_CONFLICT_MARKERS = ("non-fast-forward", "fetch first", "rejected")
_MISSING_REMOTE_REF_MARKERS = ("couldn't find remote ref", "does not match any")
_MISSING_NOTE_MARKERS = ("no note found",)
_BAD_OBJECT_MARKERS = ("not a valid object name", "bad revision", "unknown revision")


class NotesError(Exception):
    """Base error for notes store operations."""


class GitCommandError(NotesError):
    """A git invocation exited non-zero.

    Carries stderr so the failure can be classified without re-running.
    """

    def __init__(self, args: list[str], returncode: int, stderr: str = "", stdout: str = "") -> None:
        self.git_args = list(args)
        self.returncode = returncode
        self.stderr = stderr or ""
        self.stdout = stdout or ""
        detail = self.stderr.strip() or f"exit status {returncode}"
        super().__init__(f"Git command failed: git {' '.join(self.git_args)}\n{detail}")

    def _stderr_has(self, markers: tuple[str, ...]) -> bool:
        text = self.stderr.lower()
        return any(marker in text for marker in markers)

    @property
    def is_conflict(self) -> bool:
        return self._stderr_has(_CONFLICT_MARKERS)

    @property
    def is_missing_remote_ref(self) -> bool:
        return self._stderr_has(_MISSING_REMOTE_REF_MARKERS)

    @property
    def is_missing_note(self) -> bool:
        return self._stderr_has(_MISSING_NOTE_MARKERS)

    @property
    def is_bad_object(self) -> bool:
        return self._stderr_has(_BAD_OBJECT_MARKERS)


class GitTimeoutError(GitCommandError):
    """A git invocation exceeded its timeout.

    The remote state is unknown afterwards, so it is classified like a
    conflict: fetch again and retry.
    """

    def __init__(self, args: list[str], timeout: float) -> None:
        super().__init__(args, returncode=-1, stderr=f"timed out after {timeout}s")
        self.timeout = timeout

    @property
    def is_conflict(self) -> bool:
        return True


class NoteExistsError(NotesError):
    """A note already exists and the write was not forced."""

    def __init__(self, commit: str, namespace: str) -> None:
        super().__init__(f"Note already exists for {commit[:8]} in {namespace}; use force to overwrite")
        self.commit = commit
        self.namespace = namespace
