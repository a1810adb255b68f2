"""covpipe clean command - remove coverage artifacts."""

from pathlib import Path

import click

from covpipe.cli.utils import find_repo_root, load_repo_config, stage_errors
from covpipe.core.progress import pluralize, status
from covpipe.pipeline import CoverageOps


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.pass_context
def clean_command(ctx: click.Context, path: Path | None) -> None:
    """Delete raw profiles, the merged profile, and the HTML report.

    PATH is the cargo project root (default: auto-detect).
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    repo_root = find_repo_root(path)

    with stage_errors():
        config = load_repo_config(repo_root, verbose=verbose)
        removed = CoverageOps(repo_root, config).clean()

    if not removed:
        status("[yellow]Nothing to clean[/yellow]", style="none")
        return
    status(f"Removed {pluralize(len(removed), 'artifact')}", style="success")
