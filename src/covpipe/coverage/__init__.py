"""Region coverage model, merging, exclusions, and rendering.

Usage:
    from covpipe.coverage import ExclusionFilterSet, parse_export, build_summary

    exclusions = ExclusionFilterSet.default()
    report = parse_export(export_json, exclusions=exclusions)
    summary = build_summary(report)
"""

from covpipe.coverage.exclusions import ExclusionFilterSet, ExclusionRule
from covpipe.coverage.export import parse_export
from covpipe.coverage.merge import merge_file_coverage, merge_region_counts
from covpipe.coverage.models import (
    CoverageParseError,
    CoverageReport,
    CoverageTotals,
    FileCoverage,
    RegionKey,
)
from covpipe.coverage.report import (
    build_summary,
    build_summary_table,
    build_text_summary,
    compute_file_stats,
)

__all__ = [
    # Models
    "CoverageParseError",
    "CoverageReport",
    "CoverageTotals",
    "FileCoverage",
    "RegionKey",
    # Exclusions
    "ExclusionFilterSet",
    "ExclusionRule",
    # Export parsing
    "parse_export",
    # Merge
    "merge_file_coverage",
    "merge_region_counts",
    # Report
    "build_summary",
    "build_summary_table",
    "build_text_summary",
    "compute_file_stats",
]
