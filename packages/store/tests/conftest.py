"""In-memory notes store with a simulated remote, for retry and baseline tests."""

from __future__ import annotations

import pytest

from covlens_store.base import DEFAULT_MAX_RETRIES, BaseNotesStore
from covlens_store.errors import NoteExistsError


class FakeRemote:
    """Notes refs as the remote sees them: namespace → (version, notes)."""

    def __init__(self):
        self.refs: dict[str, tuple[int, dict[str, str]]] = {}

    def notes(self, namespace: str) -> dict[str, str]:
        return dict(self.refs.get(namespace, (0, {}))[1])

    def publish(self, namespace: str, notes: dict[str, str]) -> None:
        version = self.refs.get(namespace, (0, {}))[0]
        self.refs[namespace] = (version + 1, dict(notes))


class FakeNotesStore(BaseNotesStore):
    """Fast-forward-only pushes: a push succeeds only if nobody pushed since our fetch."""

    def __init__(self, remote: FakeRemote, history: list[str] | None = None, merge_base: str | None = None):
        self.remote = remote
        self.history = history or ["c3", "c2", "c1"]  # newest first
        self.merge_base_result = merge_base if merge_base is not None else self.history[0]
        self.local: dict[str, dict[str, str]] = {}
        self.base_version: dict[str, int] = {}
        self.calls: list[tuple] = []

    def fetch(self, namespace, force=False):
        self.calls.append(("fetch", namespace, force))
        if namespace not in self.remote.refs:
            return False
        version, notes = self.remote.refs[namespace]
        self.local[namespace] = dict(notes)
        self.base_version[namespace] = version
        return True

    def read(self, commit, namespace):
        self.calls.append(("read", commit))
        return self.local.get(namespace, {}).get(commit)

    def write(self, commit, content, namespace, force=False):
        self.calls.append(("write", commit, force))
        notes = self.local.setdefault(namespace, {})
        if commit in notes and not force:
            raise NoteExistsError(commit, namespace)
        notes[commit] = content

    def push(self, namespace, max_retries=DEFAULT_MAX_RETRIES):
        self.calls.append(("push", namespace, max_retries))
        remote_version = self.remote.refs.get(namespace, (0, {}))[0]
        if remote_version != self.base_version.get(namespace, 0):
            return False
        self.remote.publish(namespace, self.local.get(namespace, {}))
        self.base_version[namespace] = remote_version + 1
        return True

    def head_commit(self):
        return self.history[0]

    def merge_base(self, target_ref):
        self.calls.append(("merge_base", target_ref))
        return self.merge_base_result or None

    def list_ancestors(self, commit, count):
        self.calls.append(("list_ancestors", commit, count))
        if commit not in self.history or count <= 0:
            return []
        start = self.history.index(commit)
        return self.history[start : start + count]


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def make_store(remote):
    def _make(**kwargs):
        return FakeNotesStore(remote, **kwargs)

    return _make
