"""Region count merging with sum semantics.

This is the same sparse union that ``llvm-profdata merge -sparse`` applies to
raw profiles:

- count[r] = sum(count[r] across all sources)
- a region missing from a source contributes zero, not an error

Addition is commutative and associative, so the merged counts (and every
covered/instrumented figure derived from them) do not depend on the order
the sources arrive in.
"""

from collections.abc import Iterable, Mapping

from covpipe.coverage.models import CoverageTotals, FileCoverage, RegionKey


def merge_region_counts(sources: Iterable[Mapping[RegionKey, int]]) -> dict[RegionKey, int]:
    """Sum execution counts per region across sources.

    Args:
        sources: Region -> count mappings (e.g. one per function record or
                 one per raw profile).

    Returns:
        Region -> summed count, keys sorted for a stable iteration order.
    """
    merged: dict[RegionKey, int] = {}
    for source in sources:
        for key, count in source.items():
            merged[key] = merged.get(key, 0) + count
    return dict(sorted(merged.items()))


def merge_file_coverage(files: Iterable[FileCoverage]) -> FileCoverage:
    """Merge FileCoverage objects for the same path.

    Span counts are summed. Line and region totals come from the engine's
    per-file summaries, which are already merged views, so the larger figure
    is kept.

    Raises:
        ValueError: On an empty input or mismatched paths.
    """
    files_list = list(files)
    if not files_list:
        raise ValueError("Cannot merge empty file coverage list")

    path = files_list[0].path
    if any(fc.path != path for fc in files_list):
        raise ValueError(f"Cannot merge coverage for different files into {path}")

    summaries = [fc.region_summary for fc in files_list if fc.region_summary is not None]
    region_summary = None
    if summaries:
        region_summary = CoverageTotals(
            covered=max(s.covered for s in summaries),
            instrumented=max(s.instrumented for s in summaries),
        )

    return FileCoverage(
        path=path,
        regions=merge_region_counts(fc.regions for fc in files_list),
        lines_found=max(fc.lines_found for fc in files_list),
        lines_hit=max(fc.lines_hit for fc in files_list),
        region_summary=region_summary,
    )
