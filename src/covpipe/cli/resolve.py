"""covpipe resolve command - list the test binaries coverage is attributed to."""

from __future__ import annotations

import json
from pathlib import Path

import click

from covpipe.cli.utils import find_repo_root, load_repo_config, stage_errors
from covpipe.pipeline import CoverageOps


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def resolve_command(ctx: click.Context, path: Path | None, as_json: bool) -> None:
    """Build the tests without running them and print the instrumented binaries.

    PATH is the cargo project root (default: auto-detect).
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    repo_root = find_repo_root(path)

    with stage_errors():
        config = load_repo_config(repo_root, verbose=verbose)
        binaries = CoverageOps(repo_root, config).resolve()

    if as_json:
        click.echo(json.dumps({"binaries": list(binaries)}))
    else:
        for binary in binaries:
            click.echo(binary)
