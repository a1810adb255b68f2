"""covpipe error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Test run
- 4xxx: Merge
- 5xxx: Artifact resolution
- 6xxx: Report
- 7xxx: Viewer
- 9xxx: Internal

Every stage maps to a distinct process exit code so callers can tell which
stage failed (see ``ExitCode``).
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Process exit codes, one per failing stage."""

    SUCCESS = 0
    INTERNAL = 1
    CONFIG = 7
    TEST_FAILURE = 3
    MERGE_FAILURE = 4
    RESOLUTION_FAILURE = 5
    REPORT_FAILURE = 6


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Test run (3xxx)
    TEST_PROCESS_FAILED = 3001

    # Merge (4xxx)
    NO_COVERAGE_DATA = 4001
    MERGE_FAILED = 4002

    # Artifact resolution (5xxx)
    BUILD_DISCOVERY_FAILED = 5001
    NO_TEST_BINARIES = 5002

    # Report (6xxx)
    MISSING_ARTIFACT = 6001
    FORMAT_VERSION_MISMATCH = 6002
    REPORT_FAILED = 6003

    # Viewer (7xxx)
    VIEWER_FAILED = 7001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


_STAGE_EXIT_CODES: dict[str, ExitCode] = {
    "config": ExitCode.CONFIG,
    "test": ExitCode.TEST_FAILURE,
    "merge": ExitCode.MERGE_FAILURE,
    "resolve": ExitCode.RESOLUTION_FAILURE,
    "report": ExitCode.REPORT_FAILURE,
}


@dataclass(frozen=True, slots=True)
class CovPipeError(Exception):
    """Base error with a stage label and structured context."""

    code: ErrorCode
    message: str
    stage: str = "internal"
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'NO_COVERAGE_DATA')."""
        return self.code.name

    @property
    def exit_code(self) -> ExitCode:
        """Process exit code for the stage this error belongs to."""
        return _STAGE_EXIT_CODES.get(self.stage, ExitCode.INTERNAL)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "stage": self.stage,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.stage}] {self.error_name}: {self.message}"


class ConfigError(CovPipeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            stage="config",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            stage="config",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ExternalProcessFailure(CovPipeError):
    """An external tool could not be started, timed out, or exited non-zero."""

    @classmethod
    def not_found(cls, stage: str, executable: str) -> "ExternalProcessFailure":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Executable not found: {executable}",
            stage=stage,
            details={"executable": executable},
        )

    @classmethod
    def launch_failed(cls, stage: str, executable: str, reason: str) -> "ExternalProcessFailure":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Could not start {executable}: {reason}",
            stage=stage,
            details={"executable": executable, "reason": reason},
        )

    @classmethod
    def timed_out(
        cls, stage: str, command: list[str], timeout: float
    ) -> "ExternalProcessFailure":
        return cls(
            code=ErrorCode.INTERNAL_TIMEOUT,
            message=f"'{command[0]}' exceeded the {timeout:g}s stage timeout",
            stage=stage,
            details={"command": command, "timeout_sec": timeout},
        )

    @classmethod
    def test_process_failed(cls, exit_code: int) -> "ExternalProcessFailure":
        return cls(
            code=ErrorCode.TEST_PROCESS_FAILED,
            message=f"Test suite exited with status {exit_code}",
            stage="test",
            details={"exit_code": exit_code},
        )


class NoCoverageDataError(CovPipeError):
    """No RawProfiles available to merge."""

    @classmethod
    def empty(cls, profile_dir: str) -> "NoCoverageDataError":
        return cls(
            code=ErrorCode.NO_COVERAGE_DATA,
            message=f"No coverage data: the test run wrote no raw profiles to {profile_dir}",
            stage="merge",
            details={"profile_dir": profile_dir},
        )

    @classmethod
    def missing(cls, path: str) -> "NoCoverageDataError":
        return cls(
            code=ErrorCode.NO_COVERAGE_DATA,
            message=f"No coverage data: raw profile vanished before merge: {path}",
            stage="merge",
            details={"path": path},
        )


class MergeError(CovPipeError):
    """The merge tool rejected the raw profiles."""

    @classmethod
    def tool_failed(cls, exit_code: int, stderr: str) -> "MergeError":
        return cls(
            code=ErrorCode.MERGE_FAILED,
            message=f"Profile merge failed with status {exit_code}: {stderr.strip()}",
            stage="merge",
            details={"exit_code": exit_code, "stderr": stderr},
        )


class ArtifactResolutionError(CovPipeError):
    """Test binaries could not be discovered."""

    @classmethod
    def build_failed(cls, exit_code: int, stderr: str) -> "ArtifactResolutionError":
        return cls(
            code=ErrorCode.BUILD_DISCOVERY_FAILED,
            message=f"Build discovery failed with status {exit_code}: {stderr.strip()}",
            stage="resolve",
            details={"exit_code": exit_code, "stderr": stderr},
        )

    @classmethod
    def no_binaries(cls) -> "ArtifactResolutionError":
        return cls(
            code=ErrorCode.NO_TEST_BINARIES,
            message="Build output listed no test binaries",
            stage="resolve",
        )


class MissingArtifactError(CovPipeError):
    """A binary or profile named for analysis does not exist on disk."""

    @classmethod
    def for_path(cls, path: str, kind: str) -> "MissingArtifactError":
        return cls(
            code=ErrorCode.MISSING_ARTIFACT,
            message=f"{kind} not found: {path}",
            stage="report",
            details={"path": path, "kind": kind},
        )


class FormatVersionMismatch(CovPipeError):
    """Profile and binary instrumentation formats disagree."""

    @classmethod
    def from_stderr(cls, stderr: str) -> "FormatVersionMismatch":
        return cls(
            code=ErrorCode.FORMAT_VERSION_MISMATCH,
            message=f"Instrumentation format version mismatch: {stderr.strip()}",
            stage="report",
            details={"stderr": stderr},
        )


class ReportGenerationError(CovPipeError):
    """The coverage engine failed or produced unusable output."""

    @classmethod
    def tool_failed(cls, exit_code: int, stderr: str) -> "ReportGenerationError":
        return cls(
            code=ErrorCode.REPORT_FAILED,
            message=f"Coverage engine failed with status {exit_code}: {stderr.strip()}",
            stage="report",
            details={"exit_code": exit_code, "stderr": stderr},
        )

    @classmethod
    def bad_output(cls, reason: str) -> "ReportGenerationError":
        return cls(
            code=ErrorCode.REPORT_FAILED,
            message=f"Unreadable coverage export: {reason}",
            stage="report",
            details={"reason": reason},
        )


class InternalError(CovPipeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
