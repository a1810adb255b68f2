"""Coverage report generation via llvm-cov.

Totals always come from one ``llvm-cov export`` over every resolved binary.
The detailed mode additionally renders an HTML document with
``llvm-cov show``; it never recomputes totals, so both modes report the same
numbers for the same inputs.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Sequence
from pathlib import Path

from covpipe.config.constants import FORMAT_MISMATCH_RE, HTML_DIR_NAME, HTML_INDEX_NAME
from covpipe.config.models import ReportMode
from covpipe.core.errors import (
    CovPipeError,
    FormatVersionMismatch,
    MissingArtifactError,
    ReportGenerationError,
)
from covpipe.core.logging import get_logger
from covpipe.coverage import CoverageParseError, CoverageReport, ExclusionFilterSet, parse_export
from covpipe.pipeline.executor import ExecResult, Executor
from covpipe.pipeline.models import ReportResult

log = get_logger("report")


def object_args(binaries: Sequence[str]) -> list[str]:
    """First binary positional, the rest as ``-object`` arguments."""
    first, *rest = binaries
    args = [first]
    for binary in rest:
        args += ["-object", binary]
    return args


class ReportGenerator:
    """Computes coverage for a merged profile and renders it."""

    def __init__(
        self,
        executor: Executor,
        *,
        exclusions: ExclusionFilterSet,
        llvm_cov: str = "llvm-cov",
        demangler: str | None = None,
        base_path: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self._executor = executor
        self._exclusions = exclusions
        self._llvm_cov = llvm_cov
        self._demangler = demangler
        self._base_path = base_path
        self._timeout = timeout

    @property
    def exclusions(self) -> ExclusionFilterSet:
        return self._exclusions

    def generate(
        self,
        merged_profile: Path,
        binaries: Sequence[str],
        *,
        mode: ReportMode,
        output_dir: Path,
    ) -> ReportResult:
        """Compute coverage and render it in ``mode``.

        Raises:
            MissingArtifactError: The profile or a binary does not exist.
            FormatVersionMismatch: Profile and binaries disagree on format.
            ReportGenerationError: Engine failure or unreadable export.
        """
        self._preflight(merged_profile, binaries)

        report = self.compute(merged_profile, binaries)
        log.info(
            "coverage_computed",
            files=len(report.files),
            covered=report.region_totals.covered,
            instrumented=report.region_totals.instrumented,
        )

        html_index = None
        if mode == "detailed":
            html_index = self.render_html(merged_profile, binaries, output_dir / HTML_DIR_NAME)

        return ReportResult(mode=mode, report=report, html_index=html_index)

    def compute(self, merged_profile: Path, binaries: Sequence[str]) -> CoverageReport:
        """Run one export over all binaries and parse it."""
        cmd = [
            self._llvm_cov,
            "export",
            "-format=text",
            f"-instr-profile={merged_profile}",
            *self._exclusions.engine_args(),
            *object_args(binaries),
        ]
        result = self._executor.run(cmd, stage="report", timeout=self._timeout)
        self._check(result)

        try:
            return parse_export(
                result.stdout,
                exclusions=self._exclusions,
                base_path=self._base_path,
                binaries=tuple(binaries),
            )
        except CoverageParseError as e:
            raise ReportGenerationError.bad_output(str(e)) from e

    def render_html(self, merged_profile: Path, binaries: Sequence[str], html_dir: Path) -> Path:
        """Render the per-line document and swap it in for ``html_dir``.

        The engine writes into a staging directory; a failed render leaves
        the previous document in place.
        """
        staging = html_dir.with_name(html_dir.name + ".tmp")
        retired = html_dir.with_name(html_dir.name + ".old")
        for leftover in (staging, retired):
            if leftover.exists():
                shutil.rmtree(leftover)

        cmd = [
            self._llvm_cov,
            "show",
            "-format=html",
            f"-output-dir={staging}",
            f"-instr-profile={merged_profile}",
            "-show-line-counts-or-regions",
            "-show-instantiations=false",
            *self._exclusions.engine_args(),
        ]
        if self._demangler:
            cmd.append(f"-Xdemangler={self._demangler}")
        cmd += object_args(binaries)

        try:
            result = self._executor.run(cmd, stage="report", timeout=self._timeout)
            self._check(result)
        except CovPipeError:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        # os.replace only overwrites an empty directory
        if html_dir.exists():
            os.replace(html_dir, retired)
        os.replace(staging, html_dir)
        shutil.rmtree(retired, ignore_errors=True)

        index = html_dir / HTML_INDEX_NAME
        log.info("html_rendered", index=str(index))
        return index

    def _preflight(self, merged_profile: Path, binaries: Sequence[str]) -> None:
        if not merged_profile.is_file():
            raise MissingArtifactError.for_path(str(merged_profile), "Merged profile")
        if not binaries:
            raise ReportGenerationError.bad_output("no binaries to analyze")
        # Skipping a missing binary would silently skew the totals
        for binary in binaries:
            if not Path(binary).is_file():
                raise MissingArtifactError.for_path(binary, "Test binary")

    def _check(self, result: ExecResult) -> None:
        if result.ok:
            return
        if FORMAT_MISMATCH_RE.search(result.stderr):
            raise FormatVersionMismatch.from_stderr(result.stderr)
        raise ReportGenerationError.tool_failed(result.exit_code, result.stderr)
