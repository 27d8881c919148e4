"""No-op notes store, used when baseline tracking is switched off.

Using a NoOpNotesStore rather than None lets the CLI run the same code path
whether or not baselines are enabled: fetch reports "no history", so every
load ends as no-history and nothing is ever recorded.
"""

from __future__ import annotations

from covlens_store.base import DEFAULT_MAX_RETRIES, BaseNotesStore


class NoOpNotesStore(BaseNotesStore):
    """Remembers nothing and never touches git."""

    def fetch(self, namespace: str, force: bool = False) -> bool:
        return False

    def read(self, commit: str, namespace: str) -> str | None:
        return None

    def write(self, commit: str, content: str, namespace: str, force: bool = False) -> None:
        pass  # intentional no-op

    def push(self, namespace: str, max_retries: int = DEFAULT_MAX_RETRIES) -> bool:
        return True

    def head_commit(self) -> str:
        return ""

    def merge_base(self, target_ref: str) -> str | None:
        return None

    def list_ancestors(self, commit: str, count: int) -> list[str]:
        return []
