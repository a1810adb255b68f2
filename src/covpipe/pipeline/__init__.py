"""Coverage pipeline stages and orchestration."""

from covpipe.pipeline.executor import ExecResult, Executor, SubprocessExecutor
from covpipe.pipeline.merger import ProfileMerger
from covpipe.pipeline.models import (
    BuildArtifactRecord,
    MergedProfile,
    PipelineResult,
    RawProfile,
    ReportResult,
    RunResult,
)
from covpipe.pipeline.ops import CoverageOps, run_pipeline
from covpipe.pipeline.report import ReportGenerator
from covpipe.pipeline.resolver import ArtifactResolver, parse_build_record, resolve_binaries
from covpipe.pipeline.runner import InstrumentedTestRunner, instrumentation_env
from covpipe.pipeline.viewer import launch_viewer

__all__ = [
    # Execution
    "ExecResult",
    "Executor",
    "SubprocessExecutor",
    # Stages
    "ArtifactResolver",
    "InstrumentedTestRunner",
    "ProfileMerger",
    "ReportGenerator",
    "instrumentation_env",
    "launch_viewer",
    "parse_build_record",
    "resolve_binaries",
    # Artifacts
    "BuildArtifactRecord",
    "MergedProfile",
    "PipelineResult",
    "RawProfile",
    "ReportResult",
    "RunResult",
    # Orchestration
    "CoverageOps",
    "run_pipeline",
]
