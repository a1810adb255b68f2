"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides a scripted executor so no test needs cargo or LLVM tools.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from covpipe.pipeline.executor import ExecResult  # noqa: E402


@dataclass
class Call:
    """One recorded executor invocation."""

    command: list[str]
    stage: str
    cwd: Path | None
    env: dict[str, str]
    timeout: float | None
    capture: bool

    @property
    def subcommand(self) -> str | None:
        return self.command[1] if len(self.command) > 1 else None

    def option(self, prefix: str) -> str | None:
        """Value of a ``-name=value`` style option."""
        for arg in self.command:
            if arg.startswith(prefix):
                return arg[len(prefix) :]
        return None


Handler = ExecResult | Callable[[Call], ExecResult]


@dataclass
class FakeExecutor:
    """Executor test double.

    Responses are looked up by (stage, subcommand), then by stage, defaulting
    to a clean exit. Like the real tools, a successful call writes its
    ``-o`` output file and ``show`` writes ``-output-dir/index.html``.
    """

    calls: list[Call] = field(default_factory=list)
    handlers: dict[tuple[str, str | None], Handler] = field(default_factory=dict)

    def respond(self, stage: str, handler: Handler, *, subcommand: str | None = None) -> None:
        self.handlers[(stage, subcommand)] = handler

    def for_stage(self, stage: str) -> list[Call]:
        return [c for c in self.calls if c.stage == stage]

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
        call = Call(
            command=list(command),
            stage=stage,
            cwd=cwd,
            env=dict(env or {}),
            timeout=timeout,
            capture=capture,
        )
        self.calls.append(call)

        handler = self.handlers.get((stage, call.subcommand), self.handlers.get((stage, None)))
        if handler is None:
            result = ExecResult(exit_code=0)
        elif isinstance(handler, ExecResult):
            result = handler
        else:
            result = handler(call)

        if result.ok:
            self._write_outputs(call)
        return result

    @staticmethod
    def _write_outputs(call: Call) -> None:
        if "-o" in call.command:
            output = Path(call.command[call.command.index("-o") + 1])
            output.write_bytes(b"indexed-profile")
        html_dir = call.option("-output-dir=")
        if call.subcommand == "show" and html_dir:
            Path(html_dir).mkdir(parents=True, exist_ok=True)
            (Path(html_dir) / "index.html").write_text("<html></html>")


def region(
    line_start: int,
    count: int,
    *,
    file_id: int = 0,
    kind: int = 0,
    col_start: int = 1,
    line_end: int | None = None,
    col_end: int = 2,
) -> list[int]:
    """One export region record."""
    end = line_start if line_end is None else line_end
    return [line_start, col_start, end, col_end, count, file_id, 0, kind]


def make_export(
    functions: list[dict[str, Any]],
    files: dict[str, tuple[int, int]] | None = None,
    regions: dict[str, tuple[int, int]] | None = None,
) -> str:
    """Build an llvm-cov JSON export.

    ``files`` maps filename -> (lines found, lines covered) and ``regions``
    maps filename -> (regions found, regions covered), both as the engine's
    per-file summary. Files that only appear in function records get an
    empty line summary and no region summary.
    """
    files = dict(files or {})
    regions = regions or {}
    for function in functions:
        for filename in function["filenames"]:
            files.setdefault(filename, (0, 0))

    def summary(filename: str, found: int, hit: int) -> dict[str, Any]:
        result: dict[str, Any] = {"lines": {"count": found, "covered": hit}}
        if filename in regions:
            count, covered = regions[filename]
            result["regions"] = {"count": count, "covered": covered}
        return result

    unit = {
        "files": [
            {"filename": filename, "summary": summary(filename, found, hit)}
            for filename, (found, hit) in files.items()
        ],
        "functions": functions,
    }
    return json.dumps({"type": "llvm.coverage.json.export", "version": "2.0.1", "data": [unit]})


def artifact_line(filenames: Sequence[str], *, test: bool = True) -> str:
    """One ``compiler-artifact`` line of cargo's JSON build output."""
    return json.dumps(
        {
            "reason": "compiler-artifact",
            "profile": {"opt_level": "0", "debuginfo": 2, "test": test},
            "filenames": list(filenames),
        }
    )


def write_profiles(*names: str, exit_code: int = 0) -> Callable[[Call], ExecResult]:
    """Test-stage handler writing raw profiles where LLVM_PROFILE_FILE points."""

    def handler(call: Call) -> ExecResult:
        profile_dir = Path(call.env["LLVM_PROFILE_FILE"]).parent
        for name in names:
            (profile_dir / name).write_bytes(b"raw-profile")
        return ExecResult(exit_code=exit_code)

    return handler


DEPENDENCY_SOURCE = "/home/u/.cargo/registry/src/index-1/serde-1.0.0/src/de.rs"


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def profile_writer() -> Callable[..., Callable[[Call], ExecResult]]:
    return write_profiles


@pytest.fixture
def pipeline_executor(fake_executor: FakeExecutor, cargo_repo: Path) -> FakeExecutor:
    """Fake toolchain for a whole pipeline run over ``cargo_repo``.

    Two test binaries, two raw profiles, and an export where src/lib.rs has
    2 of 3 regions covered plus an excluded dependency file.
    """
    deps = cargo_repo / "target" / "debug" / "deps"
    build_output = "\n".join(
        [
            artifact_line([str(deps / "app-1a2b3c")]),
            artifact_line([str(deps / "build_script_build-000")], test=False),
            "warning: not json",
            artifact_line([str(deps / "integration-4d5e6f")]),
            json.dumps({"reason": "build-finished", "success": True}),
        ]
    )
    lib = str(cargo_repo / "src" / "lib.rs")
    export = make_export(
        [
            {"name": "lib::add", "filenames": [lib], "regions": [region(1, 3), region(2, 0)]},
            {"name": "lib::sub", "filenames": [lib], "regions": [region(1, 1), region(4, 2)]},
            {"name": "serde::de", "filenames": [DEPENDENCY_SOURCE], "regions": [region(1, 0)]},
        ],
        files={lib: (8, 6), DEPENDENCY_SOURCE: (20, 0)},
        regions={lib: (3, 2), DEPENDENCY_SOURCE: (1, 0)},
    )

    fake_executor.respond("resolve", ExecResult(exit_code=0, stdout=build_output))
    fake_executor.respond("test", write_profiles("cov-101-aaa.raw", "cov-102-bbb.raw"))
    fake_executor.respond("report", ExecResult(exit_code=0, stdout=export), subcommand="export")
    return fake_executor


@pytest.fixture
def build_export() -> Callable[..., str]:
    return make_export


@pytest.fixture
def build_region() -> Callable[..., list[int]]:
    return region


@pytest.fixture
def cargo_repo(tmp_path: Path) -> Path:
    """A cargo project root with two built test binaries."""
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "app"\nversion = "0.1.0"\n')
    deps = root / "target" / "debug" / "deps"
    deps.mkdir(parents=True)
    for name in ("app-1a2b3c", "integration-4d5e6f"):
        (deps / name).write_bytes(b"\x7fELF")
    return root
