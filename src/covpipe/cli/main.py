"""covpipe CLI - covpipe command."""

import click

from covpipe import __version__
from covpipe.cli.clean import clean_command
from covpipe.cli.resolve import resolve_command
from covpipe.cli.run import run_command
from covpipe.core.logging import configure_logging


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="covpipe")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """covpipe - coverage reports for instrumented cargo test suites.

    With no command, runs the whole pipeline (same as ``covpipe run``).
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")

    if ctx.invoked_subcommand is None:
        ctx.invoke(run_command)


cli.add_command(run_command, name="run")
cli.add_command(resolve_command, name="resolve")
cli.add_command(clean_command, name="clean")


if __name__ == "__main__":
    cli()
