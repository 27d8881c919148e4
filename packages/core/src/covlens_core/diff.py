"""Unified diff parsing.

Only enough of the format is understood to map added and deleted lines to
their line numbers: ``diff --git`` headers, ``@@`` hunk headers and the
``+``/``-``/context lines inside hunks.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HUNK_RE = re.compile(r"-(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")


@dataclass
class DiffFile:
    """Lines touched in one file, in file order, before any filtering."""

    filename: str
    added_lines: list[int] = field(default_factory=list)
    deleted_lines: list[int] = field(default_factory=list)


def parse_hunk_header(line: str) -> tuple[int, int]:
    """Return (old_start, new_start) from a ``@@`` line.

    A header that cannot be parsed yields (0, 0) rather than an error, so one
    odd hunk does not abort the whole diff.
    """
    match = _HUNK_RE.search(line)
    if match is None:
        return 0, 0
    return int(match.group(1)), int(match.group(2))


def filename_from_header(header: str) -> str:
    """Extract the path from ``diff --git a/<path> b/<path>``.

    Paths containing " b/" are ambiguous in this header; the first match wins.
    """
    start = header.find(" a/")
    if start == -1:
        return ""
    start += 3
    end = header.find(" b/", start)
    return header[start:end] if end != -1 else header[start:]


def _walk_hunks(diff_file: DiffFile, lines: list[str]) -> None:
    in_hunk = False
    old_line = new_line = 0

    for line in lines:
        if line.startswith("@@"):
            in_hunk = True
            old_line, new_line = parse_hunk_header(line)
            continue
        if not in_hunk:
            continue  # ---/+++/index lines before the first hunk
        if line.startswith("+"):
            diff_file.added_lines.append(new_line)
            new_line += 1
        elif line.startswith("-"):
            diff_file.deleted_lines.append(old_line)
            old_line += 1
        elif line.startswith("\\"):
            continue  # "\ No newline at end of file"
        else:
            old_line += 1
            new_line += 1


def parse_patch(filename: str, patch: str) -> DiffFile:
    """Parse the hunks of a single file, as GitHub returns them per file."""
    diff_file = DiffFile(filename=filename)
    _walk_hunks(diff_file, patch.splitlines())
    return diff_file


def parse_diff(text: str) -> list[DiffFile]:
    """Parse a multi-file unified diff (``git diff`` output)."""
    files: list[DiffFile] = []
    current: DiffFile | None = None
    body: list[str] = []

    for line in text.splitlines():
        if line.startswith("diff --git"):
            if current is not None:
                _walk_hunks(current, body)
                files.append(current)
            current = DiffFile(filename=filename_from_header(line))
            body = []
        elif current is not None:
            body.append(line)

    if current is not None:
        _walk_hunks(current, body)
        files.append(current)
    return files


def added_lines_by_file(diff_files: list[DiffFile]) -> dict[str, list[int]]:
    """Map each file to its raw added line numbers."""
    return {f.filename: f.added_lines for f in diff_files}
