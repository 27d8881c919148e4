"""Go ``-coverprofile`` parser.

Each data line describes a block::

    example.com/pkg/file.go:10.2,12.16 3 1
                           ^start ^end  ^statements ^hits

Blocks are expanded to every line they span and hits are summed per line,
so a line shared by two blocks is covered if either block ran. Several
``mode:`` sections (concatenated profiles) are accepted.
"""

from __future__ import annotations

import re
from pathlib import Path

from covlens_core.coverage.models import CoverageEntry, CoverageParseError, LineDetail
from covlens_core.utils.paths import relative_path

_BLOCK_RE = re.compile(r"^(?P<file>.+):(?P<start>\d+)\.\d+,(?P<end>\d+)\.\d+ (?P<stmts>\d+) (?P<hits>\d+)$")


def parse_content(text: str, module_name: str = "") -> list[CoverageEntry]:
    line_hits: dict[str, dict[int, int]] = {}

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("mode:"):
            continue
        match = _BLOCK_RE.match(line)
        if match is None:
            continue
        hits = line_hits.setdefault(match.group("file"), {})
        count = int(match.group("hits"))
        for number in range(int(match.group("start")), int(match.group("end")) + 1):
            hits[number] = hits.get(number, 0) + count

    entries = []
    for file_path, hits in line_hits.items():
        details = [LineDetail(line, hit) for line, hit in sorted(hits.items())]
        entries.append(
            CoverageEntry(
                file=relative_path(file_path, module_name) if module_name else file_path,
                title=file_path.rsplit("/", 1)[-1],
                found=len(details),
                hit=sum(1 for d in details if d.hit > 0),
                details=details,
            )
        )
    return entries


def read_module_name(go_mod_path: str) -> str:
    """Return the module path declared in go.mod, or "" if none is declared."""
    try:
        with open(go_mod_path, encoding="utf-8") as f:
            for line in f:
                if line.startswith("module "):
                    return line[len("module ") :].strip()
    except OSError as e:
        raise CoverageParseError(f"Failed to read {go_mod_path}: {e}") from e
    return ""


def parse(path: str, go_mod_path: str = "go.mod") -> list[CoverageEntry]:
    """Parse a Go coverage profile, making paths relative to the module root."""
    if not path:
        raise CoverageParseError("No Go coverage path provided")
    if not go_mod_path:
        raise CoverageParseError("No go.mod path provided")
    module_name = read_module_name(go_mod_path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CoverageParseError(f"Failed to read Go coverage file {path}: {e}") from e
    return parse_content(text, module_name)
