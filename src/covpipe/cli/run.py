"""covpipe run command - run tests, merge profiles, report coverage."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from covpipe.cli.utils import find_repo_root, load_repo_config, report_failure, stage_errors
from covpipe.core.errors import ExternalProcessFailure
from covpipe.coverage import build_summary, build_summary_table
from covpipe.pipeline import CoverageOps
from covpipe.pipeline.models import PipelineResult


def _print_result(result: PipelineResult, *, as_json: bool) -> None:
    report = result.report
    if as_json:
        payload = build_summary(report.report)
        payload["mode"] = report.mode
        payload["test_exit_code"] = result.run.exit_code
        payload["merged_profile"] = str(result.merged.path)
        if report.html_index is not None:
            payload["html_index"] = str(report.html_index)
        click.echo(json.dumps(payload, indent=2))
        return

    console = Console()
    console.print(build_summary_table(report.report))
    if report.html_index is not None:
        console.print(f"HTML report: {report.html_index}", highlight=False)
    for warning in result.warnings:
        click.echo(warning, err=True)


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--mode",
    type=click.Choice(["summary", "detailed"]),
    default=None,
    help="summary prints totals; detailed also renders HTML (default: config)",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the merged profile and HTML report (default: config)",
)
@click.option(
    "--open/--no-open",
    "open_viewer",
    default=None,
    help="Open the HTML report when done (default: config)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def run_command(
    ctx: click.Context,
    path: Path | None,
    mode: str | None,
    output_dir: Path | None,
    open_viewer: bool | None,
    as_json: bool,
) -> None:
    """Run the instrumented test suite and report coverage.

    Exits non-zero with a per-stage code if any stage fails. A failing test
    suite still produces a (partial) report, then exits with the test
    failure code.

    PATH is the cargo project root. If not specified, auto-detects by walking
    up from the current directory to find Cargo.toml.
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    repo_root = find_repo_root(path)

    overrides: dict[str, Any] = {}
    if output_dir is not None:
        overrides["report"] = {"output_dir": str(output_dir.resolve())}

    with stage_errors():
        config = load_repo_config(repo_root, verbose=verbose, **overrides)
        result = CoverageOps(repo_root, config).run(
            mode=mode,  # type: ignore[arg-type]
            open_viewer=open_viewer,
        )

    _print_result(result, as_json=as_json)

    if not result.run.passed:
        report_failure(ExternalProcessFailure.test_process_failed(result.run.exit_code))
