"""Region coverage data model.

File-centric model computed from the coverage engine's export. Region and
line totals are the engine's own per-file summaries, so they match what
``llvm-cov show`` prints for the same inputs. Per-span execution counts are
kept alongside for listing spans that never ran.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# (line_start, column_start, line_end, column_end)
RegionKey = tuple[int, int, int, int]


class CoverageParseError(Exception):
    """Error parsing coverage engine output."""

    pass


@dataclass(frozen=True, slots=True)
class CoverageTotals:
    """Covered / instrumented counts for one file or a whole report."""

    covered: int
    instrumented: int

    @property
    def missed(self) -> int:
        return self.instrumented - self.covered

    @property
    def percent(self) -> float:
        """Percentage covered (0.0 when nothing is instrumented)."""
        if self.instrumented == 0:
            return 0.0
        return self.covered / self.instrumented * 100.0

    def __add__(self, other: CoverageTotals) -> CoverageTotals:
        return CoverageTotals(
            covered=self.covered + other.covered,
            instrumented=self.instrumented + other.instrumented,
        )


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single source file.

    ``regions`` maps a source span to its summed execution count. Distinct
    functions can share a span (derive and macro output), so span counts are
    not region totals: those come from ``region_summary``, the engine's
    per-file figure. Without one, totals fall back to counting spans.
    """

    path: str
    regions: dict[RegionKey, int] = field(default_factory=dict)
    lines_found: int = 0
    lines_hit: int = 0
    region_summary: CoverageTotals | None = None

    @property
    def regions_found(self) -> int:
        """Total number of instrumented regions."""
        if self.region_summary is not None:
            return self.region_summary.instrumented
        return len(self.regions)

    @property
    def regions_hit(self) -> int:
        """Number of regions executed at least once."""
        if self.region_summary is not None:
            return self.region_summary.covered
        return sum(1 for count in self.regions.values() if count > 0)

    @property
    def uncovered_regions(self) -> list[RegionKey]:
        """Sorted spans that no function executed."""
        return sorted(key for key, count in self.regions.items() if count == 0)

    @property
    def region_totals(self) -> CoverageTotals:
        return CoverageTotals(covered=self.regions_hit, instrumented=self.regions_found)

    @property
    def line_totals(self) -> CoverageTotals:
        return CoverageTotals(covered=self.lines_hit, instrumented=self.lines_found)


@dataclass(slots=True)
class CoverageReport:
    """Coverage for one pipeline run, keyed by source path."""

    files: dict[str, FileCoverage] = field(default_factory=dict)
    binaries: tuple[str, ...] = ()

    @property
    def region_totals(self) -> CoverageTotals:
        """Aggregate region totals across all files."""
        total = CoverageTotals(covered=0, instrumented=0)
        for fc in self.files.values():
            total = total + fc.region_totals
        return total

    @property
    def line_totals(self) -> CoverageTotals:
        """Aggregate line totals across all files."""
        total = CoverageTotals(covered=0, instrumented=0)
        for fc in self.files.values():
            total = total + fc.line_totals
        return total
