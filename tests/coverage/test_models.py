"""Tests for coverage data models."""

from covpipe.coverage.models import CoverageReport, CoverageTotals, FileCoverage


class TestCoverageTotals:
    def test_percent(self) -> None:
        assert CoverageTotals(covered=1, instrumented=4).percent == 25.0

    def test_percent_zero_when_nothing_instrumented(self) -> None:
        assert CoverageTotals(covered=0, instrumented=0).percent == 0.0

    def test_missed(self) -> None:
        assert CoverageTotals(covered=3, instrumented=5).missed == 2

    def test_add(self) -> None:
        total = CoverageTotals(1, 2) + CoverageTotals(3, 4)
        assert total == CoverageTotals(covered=4, instrumented=6)


class TestFileCoverage:
    def test_region_counts(self) -> None:
        fc = FileCoverage(
            path="src/lib.rs",
            regions={(1, 1, 1, 5): 2, (2, 1, 2, 5): 0, (3, 1, 3, 5): 9},
        )

        assert fc.regions_found == 3
        assert fc.regions_hit == 2
        assert fc.uncovered_regions == [(2, 1, 2, 5)]

    def test_engine_region_summary_takes_precedence(self) -> None:
        fc = FileCoverage(
            path="src/cli.rs",
            regions={(10, 10, 10, 16): 3},
            region_summary=CoverageTotals(covered=4, instrumented=9),
        )

        assert fc.region_totals == CoverageTotals(covered=4, instrumented=9)
        assert fc.uncovered_regions == []

    def test_line_totals(self) -> None:
        fc = FileCoverage(path="src/lib.rs", lines_found=10, lines_hit=6)
        assert fc.line_totals == CoverageTotals(covered=6, instrumented=10)


class TestCoverageReport:
    def test_aggregates_files(self) -> None:
        report = CoverageReport(
            files={
                "a.rs": FileCoverage("a.rs", {(1, 1, 1, 2): 1, (2, 1, 2, 2): 0}, 4, 3),
                "b.rs": FileCoverage("b.rs", {(1, 1, 1, 2): 5}, 2, 2),
            }
        )

        assert report.region_totals == CoverageTotals(covered=2, instrumented=3)
        assert report.line_totals == CoverageTotals(covered=5, instrumented=6)

    def test_empty_report(self) -> None:
        report = CoverageReport()
        assert report.region_totals == CoverageTotals(covered=0, instrumented=0)
        assert report.region_totals.percent == 0.0
