"""CLI utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn

import click
from rich.markup import escape

from covpipe.config.loader import load_config
from covpipe.config.models import CovPipeConfig
from covpipe.core.errors import CovPipeError, InternalError
from covpipe.core.logging import configure_logging, get_logger
from covpipe.core.progress import get_console


def find_repo_root(start_path: Path | None = None) -> Path:
    """Find the cargo project root from the given path.

    Walks up the directory tree looking for Cargo.toml. An enclosing
    ``[workspace]`` manifest wins over a member crate's manifest.

    Raises:
        click.ClickException: If no Cargo.toml is found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    nearest: Path | None = None

    for candidate in (current, *current.parents):
        manifest = candidate / "Cargo.toml"
        if not manifest.is_file():
            continue
        if nearest is None:
            nearest = candidate
        try:
            if "[workspace]" in manifest.read_text(errors="replace"):
                return candidate
        except OSError:
            continue

    if nearest is not None:
        return nearest

    raise click.ClickException(
        f"No Cargo.toml found at or above: {start_path}\n"
        "covpipe must be run from within a cargo project."
    )


def load_repo_config(repo_root: Path, *, verbose: bool, **overrides: Any) -> CovPipeConfig:
    """Load config for ``repo_root`` and configure logging from it."""
    config = load_config(repo_root, **overrides)
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)
    return config


def report_failure(error: CovPipeError) -> NoReturn:
    """Log ``error``, print it stage-labeled, and exit with its stage code."""
    get_logger("cli").error("pipeline_failed", **error.to_dict())
    get_console().print(
        f"[red]✗[/red] [bold]\\[{error.stage}][/bold] {escape(error.message)}",
        highlight=False,
    )
    raise SystemExit(int(error.exit_code))


@contextmanager
def stage_errors() -> Iterator[None]:
    """Turn pipeline errors into a stage-labeled message and the stage's exit code.

    Filesystem errors outside any tool run (an unwritable output directory,
    say) are reported as internal errors.
    """
    try:
        yield
    except CovPipeError as e:
        report_failure(e)
    except OSError as e:
        report_failure(
            InternalError.unexpected(e.strerror or str(e), path=e.filename, errno=e.errno)
        )
