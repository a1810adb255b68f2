"""External process execution.

Every stage reaches its tool (cargo, llvm-profdata, llvm-cov, the viewer)
through an Executor, so tests can substitute a fake that records commands
and returns scripted results.
"""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from covpipe.core.errors import ExternalProcessFailure
from covpipe.core.logging import get_logger

log = get_logger("executor")


@dataclass(frozen=True, slots=True)
class ExecResult:
    """Outcome of one external process."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Executor(Protocol):
    """Capability for running one blocking external command."""

    def run(
        self,
        command: Sequence[str],
        *,
        stage: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> ExecResult:
        """Run ``command`` to completion.

        Args:
            command: Executable followed by its arguments.
            stage: Pipeline stage label, used in errors and logs.
            cwd: Working directory.
            env: Extra environment variables layered over os.environ.
            timeout: Seconds before the process is killed (None = no limit).
            capture: Capture stdout/stderr; False lets output stream to the
                     terminal.

        Raises:
            ExternalProcessFailure: Executable missing or timeout exceeded.
                A non-zero exit is NOT an error here; callers decide.
        """
        ...


class SubprocessExecutor:
    """Executor backed by ``subprocess.run``."""

    def run(
        self,
        command: Sequence[str],
        *,
        stage: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> ExecResult:
        cmd = list(command)
        full_env = {**os.environ, **env} if env else None
        log.debug("exec_start", stage=stage, command=cmd, cwd=str(cwd) if cwd else None)
        start = time.perf_counter()

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env=full_env,
                capture_output=capture,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalProcessFailure.not_found(stage, cmd[0]) from e
        except OSError as e:
            raise ExternalProcessFailure.launch_failed(stage, cmd[0], str(e)) from e
        except subprocess.TimeoutExpired as e:
            log.warning("exec_timeout", stage=stage, command=cmd, timeout_sec=timeout)
            raise ExternalProcessFailure.timed_out(stage, cmd, timeout or 0.0) from e

        elapsed = time.perf_counter() - start
        log.debug("exec_done", stage=stage, exit_code=result.returncode, elapsed_s=elapsed)
        return ExecResult(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            duration_seconds=elapsed,
        )
