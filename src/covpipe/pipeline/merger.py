"""Raw profile merging.

``llvm-profdata merge -sparse`` sums each region's counts across all inputs
(regions missing from an input count as zero); see
``covpipe.coverage.merge`` for the same rule applied to exported regions.
Inputs are handed over in canonical order, so the invocation is the same
whatever order the manifest arrived in.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from covpipe.core.errors import MergeError, NoCoverageDataError
from covpipe.core.logging import get_logger
from covpipe.pipeline.executor import Executor
from covpipe.pipeline.models import MergedProfile, RawProfile

log = get_logger("merger")


def canonical_order(profiles: Sequence[RawProfile]) -> list[RawProfile]:
    """Sort by (pid, module, path) and drop repeated paths."""
    seen: set[Path] = set()
    ordered = []
    for profile in sorted(profiles, key=lambda p: p.sort_key):
        if profile.path in seen:
            continue
        seen.add(profile.path)
        ordered.append(profile)
    return ordered


class ProfileMerger:
    """Merges a run's raw profiles into one indexed profile."""

    def __init__(
        self,
        executor: Executor,
        *,
        llvm_profdata: str = "llvm-profdata",
        retain_raw: bool = True,
        timeout: float | None = None,
    ) -> None:
        self._executor = executor
        self._llvm_profdata = llvm_profdata
        self._retain_raw = retain_raw
        self._timeout = timeout

    def merge(
        self,
        profiles: Sequence[RawProfile],
        output: Path,
        *,
        profile_dir: Path | None = None,
    ) -> MergedProfile:
        """Merge ``profiles`` into ``output``, replacing any previous merge.

        The previous merged profile stays in place until the new one has been
        written completely.

        Args:
            profiles: Manifest returned by the test runner.
            output: Merged profile path.
            profile_dir: Directory the profiles came from (for messages).

        Raises:
            NoCoverageDataError: Empty manifest, or a listed profile is gone.
                No merged profile is written.
            MergeError: The merge tool exited non-zero.
        """
        ordered = canonical_order(profiles)
        if not ordered:
            raise NoCoverageDataError.empty(str(profile_dir or output.parent))

        for profile in ordered:
            if not profile.path.is_file():
                raise NoCoverageDataError.missing(str(profile.path))

        output.parent.mkdir(parents=True, exist_ok=True)
        staging = output.with_name(output.name + ".tmp")

        cmd = [
            self._llvm_profdata,
            "merge",
            "-sparse",
            *(str(p.path) for p in ordered),
            "-o",
            str(staging),
        ]
        result = self._executor.run(cmd, stage="merge", timeout=self._timeout)
        if not result.ok:
            staging.unlink(missing_ok=True)
            raise MergeError.tool_failed(result.exit_code, result.stderr)

        os.replace(staging, output)
        log.info("merge_complete", profiles=len(ordered), output=str(output))

        if not self._retain_raw:
            for profile in ordered:
                profile.path.unlink(missing_ok=True)
            log.debug("raw_profiles_removed", count=len(ordered))

        return MergedProfile(path=output, sources=tuple(p.path for p in ordered))
