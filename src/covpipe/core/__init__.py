"""Core module exports."""

from covpipe.core.errors import (
    ArtifactResolutionError,
    ConfigError,
    CovPipeError,
    ErrorCode,
    ExitCode,
    ExternalProcessFailure,
    FormatVersionMismatch,
    InternalError,
    MergeError,
    MissingArtifactError,
    NoCoverageDataError,
    ReportGenerationError,
)
from covpipe.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    run_scope,
    set_run_id,
)
from covpipe.core.progress import spinner, status, task

__all__ = [
    # Errors
    "ArtifactResolutionError",
    "ConfigError",
    "CovPipeError",
    "ErrorCode",
    "ExitCode",
    "ExternalProcessFailure",
    "FormatVersionMismatch",
    "InternalError",
    "MergeError",
    "MissingArtifactError",
    "NoCoverageDataError",
    "ReportGenerationError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_scope",
    "set_run_id",
    # Progress
    "spinner",
    "status",
    "task",
]
