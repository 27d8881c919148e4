"""SimpleCov JSON parser.

Two layouts are understood:

- ``simplecov_json_formatter`` output: ``{"coverage": {path: {"lines": [...]}}}``
- ``.resultset.json``: ``{suite: {"coverage": {path: [...] | {"lines": [...]}}}}``;
  suites are merged by taking the max hit count per line.

In a lines array, index 0 is line 1. ``null`` and ``"ignored"`` mark
non-executable lines.
"""

from __future__ import annotations

import json
import os

from covlens_core.coverage.models import CoverageEntry, CoverageParseError, LineDetail
from covlens_core.utils.paths import relative_path


def _lines_of(cov) -> list:
    if isinstance(cov, list):
        return cov
    if isinstance(cov, dict):
        return cov.get("lines") or []
    return []


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _merge_lines(existing: list, new: list) -> list:
    merged = []
    for i in range(max(len(existing), len(new))):
        a = existing[i] if i < len(existing) else None
        b = new[i] if i < len(new) else None
        a = a if _is_number(a) else None
        b = b if _is_number(b) else None
        if a is None:
            merged.append(b)
        elif b is None:
            merged.append(a)
        else:
            merged.append(max(a, b))
    return merged


def _is_resultset(data: dict) -> bool:
    return any(isinstance(v, dict) and isinstance(v.get("coverage"), dict) for v in data.values())


def parse_content(text: str, workspace: str | None = None) -> list[CoverageEntry]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CoverageParseError(f"Invalid SimpleCov JSON: {e}") from e

    if not isinstance(data, dict):
        raise CoverageParseError("Invalid SimpleCov JSON format")

    file_lines: dict[str, list] = {}
    if isinstance(data.get("coverage"), dict):
        file_lines = {path: _lines_of(cov) for path, cov in data["coverage"].items()}
    elif _is_resultset(data):
        for suite in data.values():
            if not isinstance(suite, dict) or not isinstance(suite.get("coverage"), dict):
                continue
            for path, cov in suite["coverage"].items():
                lines = _lines_of(cov)
                file_lines[path] = _merge_lines(file_lines[path], lines) if path in file_lines else lines
    else:
        raise CoverageParseError("Invalid SimpleCov JSON format")

    entries = []
    for path, lines in file_lines.items():
        details = [LineDetail(line=i + 1, hit=int(hit)) for i, hit in enumerate(lines) if _is_number(hit)]
        entries.append(
            CoverageEntry(
                file=relative_path(path, workspace),
                title=os.path.basename(path),
                found=len(details),
                hit=sum(1 for d in details if d.hit > 0),
                details=details,
            )
        )

    if not entries:
        raise CoverageParseError("No coverage data found in SimpleCov JSON")
    return entries


def parse(path: str, workspace: str | None = None) -> list[CoverageEntry]:
    """Parse a SimpleCov JSON file into coverage entries."""
    if not path:
        raise CoverageParseError("No SimpleCov JSON path provided")
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise CoverageParseError(f"Failed to read SimpleCov file {path}: {e}") from e
    return parse_content(text, workspace)
