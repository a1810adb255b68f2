"""Instrumented test runner.

Runs the test suite with LLVM source-based coverage enabled. Each test
process writes its own raw profile (the file name carries pid and module id),
so concurrent test processes never contend for a file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from covpipe.config.constants import (
    INSTRUMENT_RUSTFLAG,
    RAW_PROFILE_GLOB,
    RAW_PROFILE_TEMPLATE,
)
from covpipe.core.logging import get_logger
from covpipe.pipeline.executor import Executor
from covpipe.pipeline.models import RawProfile, RunResult

log = get_logger("runner")


def instrumentation_env(
    profile_dir: Path,
    *,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment overrides enabling coverage instrumentation.

    The build discovery step must use the same flags as the test run, or
    cargo rebuilds the tests without instrumentation.

    Args:
        profile_dir: Directory raw profiles are written to.
        base_env: Environment to read an existing RUSTFLAGS from
                  (defaults to os.environ).
    """
    env = base_env if base_env is not None else os.environ
    rustflags = env.get("RUSTFLAGS", "").strip()
    if INSTRUMENT_RUSTFLAG not in rustflags:
        rustflags = f"{rustflags} {INSTRUMENT_RUSTFLAG}".strip()

    return {
        "RUSTFLAGS": rustflags,
        "LLVM_PROFILE_FILE": str(profile_dir / RAW_PROFILE_TEMPLATE),
        # Reproducible builds
        "CARGO_INCREMENTAL": "0",
    }


def collect_profiles(profile_dir: Path) -> tuple[RawProfile, ...]:
    """Raw profiles currently in ``profile_dir``, in canonical order."""
    if not profile_dir.is_dir():
        return ()
    profiles = []
    for path in profile_dir.glob(RAW_PROFILE_GLOB):
        profile = RawProfile.from_path(path)
        if profile is not None:
            profiles.append(profile)
    return tuple(sorted(profiles, key=lambda p: p.sort_key))


def clear_stale_profiles(profile_dir: Path) -> int:
    """Delete raw profiles left by earlier runs; returns how many were removed.

    The profile runtime merges into an existing file of the same name, so a
    reused pid would otherwise fold an old run's counters into this one.
    """
    removed = 0
    for profile in collect_profiles(profile_dir):
        profile.path.unlink(missing_ok=True)
        removed += 1
    return removed


class InstrumentedTestRunner:
    """Runs ``cargo test`` with coverage instrumentation.

    The runner never interprets pass/fail: it reports the test process exit
    code unchanged along with every profile the run produced, so a failing
    suite still yields partial coverage.
    """

    def __init__(
        self,
        executor: Executor,
        *,
        cargo: str = "cargo",
        test_args: Sequence[str] = (),
        test_binary_args: Sequence[str] = (),
        timeout: float | None = None,
    ) -> None:
        self._executor = executor
        self._cargo = cargo
        self._test_args = list(test_args)
        self._test_binary_args = list(test_binary_args)
        self._timeout = timeout

    def build_command(self) -> list[str]:
        cmd = [self._cargo, "test", *self._test_args]
        if self._test_binary_args:
            cmd += ["--", *self._test_binary_args]
        return cmd

    def run(self, repo_root: Path, profile_dir: Path) -> RunResult:
        """Run the suite and return its exit code with the profile manifest.

        Raw profiles already in ``profile_dir`` are deleted first, so the
        manifest holds exactly what this run wrote.

        Raises:
            ExternalProcessFailure: The test command could not be started or
                exceeded the stage timeout.
        """
        profile_dir.mkdir(parents=True, exist_ok=True)
        stale = clear_stale_profiles(profile_dir)
        if stale:
            log.debug("stale_profiles_removed", count=stale, profile_dir=str(profile_dir))

        result = self._executor.run(
            self.build_command(),
            stage="test",
            cwd=repo_root,
            env=instrumentation_env(profile_dir),
            timeout=self._timeout,
            capture=False,
        )

        profiles = collect_profiles(profile_dir)
        log.info(
            "test_run_complete",
            exit_code=result.exit_code,
            profiles=len(profiles),
            elapsed_s=round(result.duration_seconds, 2),
        )
        return RunResult(
            exit_code=result.exit_code,
            profiles=profiles,
            duration_seconds=result.duration_seconds,
        )
