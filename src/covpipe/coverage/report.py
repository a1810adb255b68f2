"""Coverage summary rendering.

Everything here is derived from a CoverageReport only, so the summary and
detailed output modes print identical totals for the same report.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "total_regions": int,
        "covered_regions": int,
        "region_coverage_percent": float,
        "total_lines": int,
        "covered_lines": int,
        "line_coverage_percent": float
    },
    "files": [
        {
            "path": str,
            "total_regions": int,
            "covered_regions": int,
            "region_coverage_percent": float,
            "total_lines": int,
            "covered_lines": int,
            "line_coverage_percent": float,
            "uncovered_spans": [[line_start, col_start, line_end, col_end], ...]
        },
        ...
    ],
    "binaries": [str, ...]
}
"""

from typing import Any

from rich.table import Table

from covpipe.coverage.models import CoverageReport, CoverageTotals


def _percent_cell(totals: CoverageTotals) -> str:
    if totals.instrumented == 0:
        return "-"
    pct = totals.percent
    color = "green" if pct >= 80.0 else "yellow" if pct >= 50.0 else "red"
    return f"[{color}]{pct:.2f}%[/{color}]"


def compute_file_stats(report: CoverageReport) -> list[dict[str, Any]]:
    """Compute per-file coverage statistics, sorted by path."""
    file_stats = []

    for path in sorted(report.files):
        fc = report.files[path]
        regions = fc.region_totals
        lines = fc.line_totals
        file_stats.append(
            {
                "path": path,
                "total_regions": regions.instrumented,
                "covered_regions": regions.covered,
                "region_coverage_percent": round(regions.percent, 2),
                "total_lines": lines.instrumented,
                "covered_lines": lines.covered,
                "line_coverage_percent": round(lines.percent, 2),
                "uncovered_spans": [list(span) for span in fc.uncovered_regions],
            }
        )

    return file_stats


def build_summary(report: CoverageReport, *, include_files: bool = True) -> dict[str, Any]:
    """Build a structured coverage summary suitable for JSON serialization."""
    regions = report.region_totals
    lines = report.line_totals

    result: dict[str, Any] = {
        "summary": {
            "total_files": len(report.files),
            "total_regions": regions.instrumented,
            "covered_regions": regions.covered,
            "region_coverage_percent": round(regions.percent, 2),
            "total_lines": lines.instrumented,
            "covered_lines": lines.covered,
            "line_coverage_percent": round(lines.percent, 2),
        },
        "binaries": list(report.binaries),
    }

    if include_files:
        result["files"] = compute_file_stats(report)

    return result


def build_text_summary(report: CoverageReport) -> str:
    """One-line summary for status output."""
    regions = report.region_totals
    if regions.instrumented == 0:
        return "No coverage data"

    return (
        f"Coverage: {regions.percent:.1f}% "
        f"({regions.covered}/{regions.instrumented} regions)"
    )


def build_summary_table(report: CoverageReport) -> Table:
    """Per-file table with an aggregate TOTAL row."""
    table = Table(title="Coverage summary", title_justify="left")
    table.add_column("File", overflow="fold")
    table.add_column("Regions", justify="right")
    table.add_column("Missed", justify="right")
    table.add_column("Cover", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("Line cover", justify="right")

    for path in sorted(report.files):
        fc = report.files[path]
        regions = fc.region_totals
        table.add_row(
            path,
            str(regions.instrumented),
            str(regions.missed),
            _percent_cell(regions),
            str(fc.lines_found),
            _percent_cell(fc.line_totals),
        )

    regions = report.region_totals
    lines = report.line_totals
    table.add_section()
    table.add_row(
        "[bold]TOTAL[/bold]",
        str(regions.instrumented),
        str(regions.missed),
        _percent_cell(regions),
        str(lines.instrumented),
        _percent_cell(lines),
    )
    return table
