from __future__ import annotations

import os
from pathlib import Path


def relative_path(path: str, base: str | None) -> str:
    """Return ``path`` relative to ``base`` using forward slashes.

    Paths are returned unchanged (apart from separator normalisation) when no
    base is given, so reports produced with repo-relative paths pass through.
    """
    if base:
        path = os.path.relpath(path, base)
    return Path(path).as_posix()
