"""Coverage pipeline operations - resolve, run, clean.

Stage order for ``run``: resolve -> test -> merge -> report -> viewer.
Resolution only inspects build metadata, so it goes first and a broken build
fails before the (slow) test run. Each stage blocks until its external
process exits; the merge therefore never sees a half-written profile set.

On failure the pipeline stops at the current stage and leaves everything
already produced (raw profiles, a previous merged profile) on disk.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from covpipe.config.constants import HTML_DIR_NAME, MERGED_PROFILE_NAME, RAW_PROFILE_GLOB
from covpipe.config.loader import resolve_dir
from covpipe.config.models import CovPipeConfig, ReportMode
from covpipe.core.logging import get_logger, run_scope
from covpipe.core.progress import pluralize, spinner, status, task
from covpipe.coverage import ExclusionFilterSet, build_text_summary
from covpipe.pipeline.executor import Executor, SubprocessExecutor
from covpipe.pipeline.merger import ProfileMerger
from covpipe.pipeline.models import PipelineResult
from covpipe.pipeline.report import ReportGenerator
from covpipe.pipeline.resolver import ArtifactResolver
from covpipe.pipeline.runner import InstrumentedTestRunner, instrumentation_env
from covpipe.pipeline.viewer import launch_viewer

log = get_logger("ops")


class CoverageOps:
    """Coverage pipeline for one repository."""

    def __init__(
        self,
        repo_root: Path,
        config: CovPipeConfig,
        executor: Executor | None = None,
    ) -> None:
        self._repo_root = repo_root
        self._config = config
        self._executor: Executor = executor or SubprocessExecutor()

    @property
    def profile_dir(self) -> Path:
        return resolve_dir(self._repo_root, self._config.profiles.profile_dir)

    @property
    def output_dir(self) -> Path:
        return resolve_dir(self._repo_root, self._config.report.output_dir)

    @property
    def merged_profile_path(self) -> Path:
        return self.output_dir / MERGED_PROFILE_NAME

    @property
    def exclusions(self) -> ExclusionFilterSet:
        return ExclusionFilterSet.default(self._config.report.extra_exclusions)

    def resolver(self) -> ArtifactResolver:
        cfg = self._config
        return ArtifactResolver(
            self._executor,
            cargo=cfg.tools.cargo,
            test_args=cfg.build.test_args,
            env=instrumentation_env(self.profile_dir),
            timeout=cfg.timeouts.build_sec,
        )

    def runner(self) -> InstrumentedTestRunner:
        cfg = self._config
        return InstrumentedTestRunner(
            self._executor,
            cargo=cfg.tools.cargo,
            test_args=cfg.build.test_args,
            test_binary_args=cfg.build.test_binary_args,
            timeout=cfg.timeouts.test_sec,
        )

    def merger(self) -> ProfileMerger:
        cfg = self._config
        return ProfileMerger(
            self._executor,
            llvm_profdata=cfg.tools.llvm_profdata,
            retain_raw=cfg.profiles.retain_raw,
            timeout=cfg.timeouts.merge_sec,
        )

    def report_generator(self) -> ReportGenerator:
        cfg = self._config
        return ReportGenerator(
            self._executor,
            exclusions=self.exclusions,
            llvm_cov=cfg.tools.llvm_cov,
            demangler=cfg.tools.demangler,
            base_path=self._repo_root,
            timeout=cfg.timeouts.report_sec,
        )

    def resolve(self) -> tuple[str, ...]:
        """Discover the instrumented test binaries."""
        with spinner("Resolving test binaries"):
            binaries = self.resolver().resolve(self._repo_root)
        noun = pluralize(len(binaries), "test binary", "test binaries")
        status(f"Resolved {noun}", style="success")
        return binaries

    def run(
        self,
        *,
        mode: ReportMode | None = None,
        open_viewer: bool | None = None,
    ) -> PipelineResult:
        """Run the whole pipeline.

        Args:
            mode: Output mode override (default: config.report.mode).
            open_viewer: Viewer override (default: config.viewer.enabled).

        Returns:
            PipelineResult; its exit_code reflects the test suite result.

        Raises:
            CovPipeError: The first failing stage's error.
        """
        mode = mode or self._config.report.mode
        open_viewer = self._config.viewer.enabled if open_viewer is None else open_viewer

        with run_scope():
            log.info("pipeline_start", repo=str(self._repo_root), mode=mode)
            binaries = self.resolve()

            with task("Running instrumented tests"):
                run = self.runner().run(self._repo_root, self.profile_dir)
            if not run.passed:
                status(
                    f"Test suite exited with status {run.exit_code}; reporting partial coverage",
                    style="warning",
                )

            with spinner(f"Merging {pluralize(len(run.profiles), 'raw profile')}"):
                merged = self.merger().merge(
                    run.profiles,
                    self.merged_profile_path,
                    profile_dir=self.profile_dir,
                )
            status(f"Merged {pluralize(len(merged.sources), 'raw profile')}", style="success")

            with spinner("Generating coverage report"):
                report = self.report_generator().generate(
                    merged.path,
                    binaries,
                    mode=mode,
                    output_dir=self.output_dir,
                )
            status(build_text_summary(report.report), style="success")

            result = PipelineResult(run=run, merged=merged, binaries=binaries, report=report)

            if open_viewer and report.html_index is not None:
                result.viewer_opened = launch_viewer(
                    self._executor,
                    report.html_index,
                    command=self._config.viewer.command,
                    timeout=self._config.timeouts.viewer_sec,
                )
                if not result.viewer_opened:
                    result.warnings.append(
                        f"Could not open viewer; report is at {report.html_index}"
                    )

            log.info("pipeline_done", exit_code=int(result.exit_code))
            return result

    def clean(self) -> list[Path]:
        """Delete raw profiles, the merged profile, and the rendered report."""
        removed: list[Path] = []
        if self.profile_dir.is_dir():
            for path in sorted(self.profile_dir.glob(RAW_PROFILE_GLOB)):
                path.unlink(missing_ok=True)
                removed.append(path)

        if self.merged_profile_path.exists():
            self.merged_profile_path.unlink()
            removed.append(self.merged_profile_path)

        html_dir = self.output_dir / HTML_DIR_NAME
        if html_dir.is_dir():
            shutil.rmtree(html_dir)
            removed.append(html_dir)

        log.info("clean_done", removed=len(removed))
        return removed


def run_pipeline(
    repo_root: Path,
    config: CovPipeConfig,
    executor: Executor | None = None,
    *,
    mode: ReportMode | None = None,
    open_viewer: bool | None = None,
) -> PipelineResult:
    """Run every stage for ``repo_root`` (see ``CoverageOps.run``)."""
    return CoverageOps(repo_root, config, executor).run(mode=mode, open_viewer=open_viewer)
