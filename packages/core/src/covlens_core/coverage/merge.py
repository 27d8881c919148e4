"""Merging and reduction of parsed coverage entries."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from covlens_core.coverage.models import CoverageEntry, FileCoverage, LineDetail


@dataclass
class _Accumulator:
    file: str
    title: str
    package: str | None
    line_hits: dict[int, int] = field(default_factory=dict)
    # Totals from entries that carried no per-line details.
    preserved_found: int = 0
    preserved_hit: int = 0


def merge_by_file(entries: list[CoverageEntry]) -> list[CoverageEntry]:
    """Merge entries for the same file coming from several test runs.

    A line counts as covered if any run hit it, so hits are merged by max.
    Files keep the order in which they were first seen.
    """
    by_file: dict[str, _Accumulator] = {}

    for entry in entries:
        acc = by_file.get(entry.file)
        if acc is None:
            acc = _Accumulator(file=entry.file, title=entry.title, package=entry.package)
            by_file[entry.file] = acc
        for detail in entry.details:
            acc.line_hits[detail.line] = max(acc.line_hits.get(detail.line, 0), detail.hit)
        if not entry.details:
            acc.preserved_found += entry.found
            acc.preserved_hit += entry.hit

    merged = []
    for acc in by_file.values():
        details = [LineDetail(line, hit) for line, hit in sorted(acc.line_hits.items())]
        merged.append(
            CoverageEntry(
                file=acc.file,
                title=acc.title,
                package=acc.package,
                found=len(details) if details else acc.preserved_found,
                # correct_totals() recomputes this when details are present.
                hit=acc.preserved_hit,
                details=details,
            )
        )
    return merged


def correct_totals(entries: list[CoverageEntry]) -> list[CoverageEntry]:
    """Recompute found/hit from line details wherever details exist."""
    corrected = []
    for entry in entries:
        if not entry.details:
            corrected.append(entry)
            continue
        hit = sum(1 for d in entry.details if d.hit > 0)
        corrected.append(replace(entry, found=len(entry.details), hit=hit))
    return corrected


def filter_by_file(entries: list[CoverageEntry]) -> list[FileCoverage]:
    """Reduce entries to the executable/missing line view used for annotations."""
    files = []
    for entry in entries:
        executable: set[int] = set()
        missing: list[int] = []
        covered = 0
        for detail in entry.details:
            executable.add(detail.line)
            if detail.hit > 0:
                covered += 1
            else:
                missing.append(detail.line)
        files.append(
            FileCoverage(
                file_name=entry.file,
                executable_lines=executable,
                missing_lines=sorted(set(missing)),
                covered_line_count=covered,
            )
        )
    return files


def totals(entries: list[CoverageEntry]) -> tuple[int, int, str]:
    """Return (total_lines, covered_lines, percentage) across all entries.

    The percentage is a two-decimal string, "0.00" when nothing was found.
    """
    total = sum(e.found for e in entries)
    covered = sum(e.hit for e in entries)
    pct = f"{covered / total * 100:.2f}" if total > 0 else "0.00"
    return total, covered, pct
