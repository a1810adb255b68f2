"""Pipeline artifacts passed between stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from covpipe.config.constants import RAW_PROFILE_RE
from covpipe.config.models import ReportMode
from covpipe.core.errors import ExitCode
from covpipe.coverage.models import CoverageReport


@dataclass(frozen=True, slots=True)
class RawProfile:
    """One per-process coverage capture (``cov-<pid>-<mod>.raw``).

    pid and module are parsed from the file name and used for ordering and
    diagnostics only; the file content is opaque.
    """

    path: Path
    pid: int | None = None
    module: str | None = None

    @classmethod
    def from_path(cls, path: Path) -> RawProfile | None:
        """Build from a file name, or None if it is not a raw profile name."""
        match = RAW_PROFILE_RE.match(path.name)
        if not match:
            return None
        return cls(path=path, pid=int(match["pid"]), module=match["module"])

    @property
    def sort_key(self) -> tuple[int, str, str]:
        return (self.pid if self.pid is not None else -1, self.module or "", str(self.path))


@dataclass(frozen=True, slots=True)
class RunResult:
    """Outcome of the instrumented test run.

    ``profiles`` is the explicit manifest of raw profiles this run wrote.
    """

    exit_code: int
    profiles: tuple[RawProfile, ...] = ()
    duration_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True, slots=True)
class MergedProfile:
    """The indexed profile produced from one run's raw profiles."""

    path: Path
    sources: tuple[Path, ...] = ()


@dataclass(frozen=True, slots=True)
class BuildArtifactRecord:
    """One build event of interest from the build tool's JSON stream."""

    is_test: bool
    filenames: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReportResult:
    """Computed coverage plus where the rendered document went (if any)."""

    mode: ReportMode
    report: CoverageReport
    html_index: Path | None = None


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    run: RunResult
    merged: MergedProfile
    binaries: tuple[str, ...]
    report: ReportResult
    viewer_opened: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> ExitCode:
        """Success unless the test suite itself failed."""
        return ExitCode.SUCCESS if self.run.passed else ExitCode.TEST_FAILURE
