"""Optimistic fetch-write-push for notes refs.

Several CI runs may record snapshots in the same namespace at once. The
remote only accepts fast-forward ref updates and offers no compare-and-swap,
so each attempt:

1. force-fetches the namespace, dropping any stale local view,
2. re-applies this run's write on top of the fresh state,
3. pushes.

A rejected push means someone else got there first; the loop starts over.
The fetch must come immediately before the write: reordering reopens the
race this exists to close.

Last writer wins at the ref level. Two runs writing the same commit in the
same namespace leave only one of their notes.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from covlens_store.base import DEFAULT_MAX_RETRIES, BaseNotesStore
from covlens_store.errors import GitCommandError

logger = logging.getLogger(__name__)


def write_and_push(
    store: BaseNotesStore,
    commit: str,
    content: str,
    namespace: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Write ``content`` on ``commit`` and publish it, retrying on conflicts.

    Returns True once a push lands and False if every attempt conflicted.
    Errors that are not conflicts propagate immediately.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    for attempt in range(1, max_retries + 1):
        try:
            store.fetch(namespace, force=True)
            store.write(commit, content, namespace, force=True)
            if store.push(namespace, max_retries=1):
                if attempt > 1:
                    logger.info("Pushed %s notes on attempt %d", namespace, attempt)
                return True
        except GitCommandError as e:
            if not e.is_conflict:
                raise
            logger.debug("Conflict on attempt %d: %s", attempt, e.stderr.strip())

        if attempt < max_retries:
            logger.info("Notes push conflicted (attempt %d/%d); refetching", attempt, max_retries)
            sleep(retry_delay * attempt)

    logger.warning("Giving up on pushing %s notes after %d attempts", namespace, max_retries)
    return False
