"""Test binary discovery from structured build output.

``cargo test --no-run --message-format=json`` compiles (or reuses) every test
target without running it and prints one JSON object per build event.
Compiler-artifact events look like::

    {"reason": "compiler-artifact",
     "profile": {"test": true, ...},
     "filenames": ["/repo/target/debug/deps/app-1a2b3c"],
     "executable": "/repo/target/debug/deps/app-1a2b3c", ...}

Other event kinds (compiler messages, build-script output, build-finished)
and any line that is not valid JSON are skipped, not fatal.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from covpipe.config.constants import DEBUG_SYMBOL_BUNDLE_RE
from covpipe.core.errors import ArtifactResolutionError
from covpipe.core.logging import get_logger
from covpipe.pipeline.executor import Executor
from covpipe.pipeline.models import BuildArtifactRecord

log = get_logger("resolver")


def parse_build_record(line: str) -> BuildArtifactRecord | None:
    """Parse one build-event line; None for blank, malformed, or unrelated lines."""
    stripped = line.strip()
    if not stripped:
        return None

    try:
        event = json.loads(stripped)
    except json.JSONDecodeError:
        log.debug("build_record_skipped", reason="invalid_json", line=stripped[:200])
        return None

    if not isinstance(event, dict):
        return None

    profile = event.get("profile")
    filenames = event.get("filenames")
    if not isinstance(profile, dict) or not isinstance(filenames, list):
        return None

    return BuildArtifactRecord(
        is_test=profile.get("test") is True,
        filenames=tuple(f for f in filenames if isinstance(f, str)),
    )


def resolve_binaries(lines: Iterable[str]) -> tuple[str, ...]:
    """Collect test binary paths from a build-event stream.

    Keeps records flagged as test-profile builds, drops debug-symbol bundles,
    and removes duplicates while preserving first-seen order.
    """
    binaries: dict[str, None] = {}
    for line in lines:
        record = parse_build_record(line)
        if record is None or not record.is_test:
            continue
        for filename in record.filenames:
            if DEBUG_SYMBOL_BUNDLE_RE.search(filename):
                continue
            binaries.setdefault(filename, None)
    return tuple(binaries)


class ArtifactResolver:
    """Finds the instrumented test binaries to attribute coverage to."""

    def __init__(
        self,
        executor: Executor,
        *,
        cargo: str = "cargo",
        test_args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        self._executor = executor
        self._cargo = cargo
        self._test_args = list(test_args)
        self._env = dict(env) if env else None
        self._timeout = timeout

    def build_command(self) -> list[str]:
        return [self._cargo, "test", *self._test_args, "--no-run", "--message-format=json"]

    def resolve(self, repo_root: Path) -> tuple[str, ...]:
        """Run build discovery and return the ordered, duplicate-free binary set.

        Raises:
            ArtifactResolutionError: The build failed, or listed no test binaries.
            ExternalProcessFailure: cargo missing or stage timeout exceeded.
        """
        result = self._executor.run(
            self.build_command(),
            stage="resolve",
            cwd=repo_root,
            env=self._env,
            timeout=self._timeout,
        )
        if not result.ok:
            raise ArtifactResolutionError.build_failed(result.exit_code, result.stderr)

        binaries = resolve_binaries(result.stdout.splitlines())
        if not binaries:
            raise ArtifactResolutionError.no_binaries()

        log.info("binaries_resolved", count=len(binaries))
        return binaries
