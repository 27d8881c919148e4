"""Cobertura XML parser.

Reads ``coverage/packages/package/classes/class/lines/line`` and produces one
entry per class element, tagged with its package name. Method-level ``line``
elements are ignored since they duplicate the class-level ones.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from covlens_core.coverage.models import CoverageEntry, CoverageParseError, LineDetail
from covlens_core.utils.paths import relative_path


def parse_content(text: str, workspace: str | None = None) -> list[CoverageEntry]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise CoverageParseError(f"Invalid Cobertura XML: {e}") from e

    # Strip namespaces so lookups below work for namespaced reports too.
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]

    entries = []
    for pkg in root.findall("./packages/package"):
        package_name = pkg.get("name", "")
        for cls in pkg.findall("./classes/class"):
            filename = cls.get("filename", "")
            if not filename:
                continue
            details = [
                LineDetail(line=int(line.get("number", 0)), hit=int(line.get("hits", 0)))
                for line in cls.findall("./lines/line")
            ]
            entries.append(
                CoverageEntry(
                    file=relative_path(filename, workspace),
                    title=cls.get("name", ""),
                    package=package_name,
                    found=len(details),
                    hit=sum(1 for d in details if d.hit > 0),
                    details=details,
                )
            )
    return entries


def parse(path: str, workspace: str | None = None) -> list[CoverageEntry]:
    """Parse a Cobertura XML report into coverage entries."""
    if not path:
        raise CoverageParseError("No Cobertura XML path provided")
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise CoverageParseError(f"Failed to read Cobertura file {path}: {e}") from e
    return parse_content(text, workspace)
