"""Abstract notes store interface.

A notes store attaches text to commits, one independent log per namespace,
and synchronises that log through a shared remote. BaselineManager depends
on BaseNotesStore, not on git, so tests can swap in an in-memory fake and
a disabled run can use NoOpNotesStore.

Within one run, calls for a namespace must go fetch → write → push. The
remote only accepts fast-forward updates, and write_and_push() in
covlens_store.retry relies on that ordering to detect concurrent writers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

DEFAULT_MAX_RETRIES = 3


def notes_ref(namespace: str) -> str:
    """Full ref path holding a namespace's notes."""
    return f"refs/notes/{namespace}"


class BaseNotesStore(ABC):
    """Commit-addressed key/value store scoped by namespace."""

    @abstractmethod
    def fetch(self, namespace: str, force: bool = False) -> bool:
        """Pull the namespace from the remote.

        Returns False if the remote has no such ref yet, which just means
        nothing has been recorded. ``force`` discards the local view.
        """

    @abstractmethod
    def read(self, commit: str, namespace: str) -> str | None:
        """Return the note attached to ``commit``, or None if there is none."""

    @abstractmethod
    def write(self, commit: str, content: str, namespace: str, force: bool = False) -> None:
        """Attach ``content`` to ``commit``.

        Without ``force`` an existing note raises NoteExistsError.
        """

    def append(self, commit: str, content: str, namespace: str) -> None:
        """Add a line to the note on ``commit``, creating it if needed."""
        existing = self.read(commit, namespace)
        combined = f"{existing}\n{content}" if existing else content
        self.write(commit, combined, namespace, force=True)

    @abstractmethod
    def push(self, namespace: str, max_retries: int = DEFAULT_MAX_RETRIES) -> bool:
        """Publish local notes. False means conflicts outlasted the retries."""

    @abstractmethod
    def head_commit(self) -> str:
        """SHA of the checked-out commit."""

    @abstractmethod
    def merge_base(self, target_ref: str) -> str | None:
        """Nearest common ancestor of HEAD and ``target_ref``, or None."""

    @abstractmethod
    def list_ancestors(self, commit: str, count: int) -> list[str]:
        """Up to ``count`` commits reachable from ``commit``, newest first.

        ``commit`` itself is the first element.
        """

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
