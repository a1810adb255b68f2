"""llvm-cov JSON export parser.

``llvm-cov export -format=text`` produces:

{
  "type": "llvm.coverage.json.export",
  "version": "2.0.1",
  "data": [
    {
      "files": [
        {"filename": "/repo/src/lib.rs",
         "summary": {"lines": {"count": 40, "covered": 31, ...},
                     "regions": {"count": 52, "covered": 40, ...}, ...},
         "segments": [...], "branches": [...], "expansions": [...]}
      ],
      "functions": [
        {"name": "_RNv...", "count": 3, "filenames": ["/repo/src/lib.rs"],
         "regions": [[line_start, col_start, line_end, col_end,
                      execution_count, file_id, expanded_file_id, kind], ...]}
      ],
      "totals": {...}
    }
  ]
}

Region and line totals are read from each file's ``summary``: the engine has
already folded generic instantiations there, and it keeps distinct functions
that share a span (derives, macros) apart. Function records only feed the
per-span execution counts, summed per span with merge.py. Exclusion rules are
applied here too, so excluded files never reach the totals even if the engine
was run without them.
"""

from __future__ import annotations

import contextlib
import json
from collections import defaultdict
from pathlib import Path
from typing import Any

from covpipe.config.constants import CODE_REGION_KIND, EXPORT_TYPE
from covpipe.coverage.exclusions import ExclusionFilterSet
from covpipe.coverage.merge import merge_file_coverage, merge_region_counts
from covpipe.coverage.models import (
    CoverageParseError,
    CoverageReport,
    CoverageTotals,
    FileCoverage,
    RegionKey,
)


def _normalize(path: str, base_path: Path | None) -> str:
    if base_path:
        # Path not under base_path -> use as-is
        with contextlib.suppress(ValueError):
            return str(Path(path).relative_to(base_path))
    return path


def _totals(section: Any) -> CoverageTotals | None:
    if not isinstance(section, dict) or "count" not in section:
        return None
    return CoverageTotals(
        covered=int(section.get("covered", 0)),
        instrumented=int(section["count"]),
    )


def _parse_unit(
    unit: dict[str, Any],
    exclusions: ExclusionFilterSet,
    base_path: Path | None,
) -> dict[str, FileCoverage]:
    files: dict[str, FileCoverage] = {}

    for entry in unit.get("files", []):
        filename = entry.get("filename")
        if not isinstance(filename, str) or exclusions.excludes(filename):
            continue
        summary = entry.get("summary") or {}
        lines = summary.get("lines") or {}
        path = _normalize(filename, base_path)
        files[path] = FileCoverage(
            path=path,
            lines_found=int(lines.get("count", 0)),
            lines_hit=int(lines.get("covered", 0)),
            region_summary=_totals(summary.get("regions")),
        )

    region_sources: dict[str, list[dict[RegionKey, int]]] = defaultdict(list)

    for function in unit.get("functions", []):
        filenames = function.get("filenames", [])
        per_file: dict[str, dict[RegionKey, int]] = defaultdict(dict)

        for region in function.get("regions", []):
            if not isinstance(region, list) or len(region) < 8:
                raise CoverageParseError(f"Malformed region record: {region!r}")
            line_start, col_start, line_end, col_end, count, file_id, _expanded, kind = region[:8]
            if kind != CODE_REGION_KIND:
                continue
            try:
                filename = filenames[file_id]
            except (IndexError, TypeError) as e:
                raise CoverageParseError(
                    f"Region refers to unknown file id {file_id} in {function.get('name')}"
                ) from e
            if exclusions.excludes(filename):
                continue
            key = (line_start, col_start, line_end, col_end)
            counts = per_file[_normalize(filename, base_path)]
            counts[key] = counts.get(key, 0) + count

        for path, counts in per_file.items():
            region_sources[path].append(counts)

    for path, sources in region_sources.items():
        fc = files.setdefault(path, FileCoverage(path=path))
        fc.regions = merge_region_counts(sources)

    return files


def parse_export(
    payload: str | bytes,
    *,
    exclusions: ExclusionFilterSet | None = None,
    base_path: Path | None = None,
    binaries: tuple[str, ...] = (),
) -> CoverageReport:
    """Parse llvm-cov export JSON into a CoverageReport.

    Args:
        payload: Raw JSON text from ``llvm-cov export -format=text``.
        exclusions: Rules whose matching files are dropped entirely.
        base_path: Repo root for making file paths relative.
        binaries: Binaries the export was computed from (recorded on the report).

    Raises:
        CoverageParseError: If the payload is not a coverage export.
    """
    exclusions = exclusions or ExclusionFilterSet()

    try:
        doc = json.loads(payload)
    except json.JSONDecodeError as e:
        raise CoverageParseError(f"Failed to parse coverage export JSON: {e}") from e

    if not isinstance(doc, dict) or doc.get("type") != EXPORT_TYPE:
        raise CoverageParseError("Not an llvm-cov JSON export")

    units = doc.get("data")
    if not isinstance(units, list):
        raise CoverageParseError("Coverage export has no data array")

    grouped: dict[str, list[FileCoverage]] = defaultdict(list)
    for unit in units:
        for path, fc in _parse_unit(unit, exclusions, base_path).items():
            grouped[path].append(fc)

    files = {
        path: group[0] if len(group) == 1 else merge_file_coverage(group)
        for path, group in sorted(grouped.items())
    }
    return CoverageReport(files=files, binaries=binaries)
