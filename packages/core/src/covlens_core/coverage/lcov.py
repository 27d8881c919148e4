"""LCOV tracefile parser.

Only the records needed for line coverage are read:

- ``TN:<test name>``
- ``SF:<source file>``
- ``DA:<line>,<hits>[,<checksum>]``
- ``LF:<lines found>`` / ``LH:<lines hit>``
- ``end_of_record``

Keys are matched case-insensitively. A final record without a terminating
``end_of_record`` is still kept.
"""

from __future__ import annotations

from pathlib import Path

from covlens_core.coverage.models import CoverageEntry, CoverageParseError, LineDetail
from covlens_core.utils.paths import relative_path


def parse_content(text: str, workspace: str | None = None) -> list[CoverageEntry]:
    entries: list[CoverageEntry] = []
    item = CoverageEntry(file="")

    for raw in text.splitlines():
        key, _, value = raw.strip().partition(":")
        key = key.upper()

        if key == "TN":
            item.title = value.strip()
        elif key == "SF":
            item.file = relative_path(value.strip(), workspace)
        elif key == "LF":
            item.found = _to_int(value)
        elif key == "LH":
            item.hit = _to_int(value)
        elif key == "DA":
            parts = value.split(",")
            if len(parts) >= 2:
                item.details.append(LineDetail(line=_to_int(parts[0]), hit=_to_int(parts[1])))
        elif key == "END_OF_RECORD":
            if item.file:
                entries.append(item)
            item = CoverageEntry(file="")

    if item.file:
        entries.append(item)

    if not entries:
        raise CoverageParseError("Failed to parse lcov data: no SF records found")
    return entries


def parse(path: str, workspace: str | None = None) -> list[CoverageEntry]:
    """Parse an LCOV file into coverage entries."""
    if not path:
        raise CoverageParseError("No LCOV path provided")
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CoverageParseError(f"Failed to read LCOV file {path}: {e}") from e
    return parse_content(text, workspace)


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        # Some generators emit floats for hit counts.
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
