"""Terminal feedback for pipeline stages.

Stages whose tool output is captured (resolve, merge, report) run under a
``spinner``; the test stage streams cargo's own output and runs under a
``task``, which only prints a start line and a timed result line. Outside a
terminal the spinner degrades to a single line.

While a spinner is live, console log handlers are muted (see
``ConsoleSuppressingFilter``) so log lines do not tear the spinner.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Literal

from rich.console import Console

from covpipe.core.logging import get_logger

Style = Literal["success", "error", "warning", "info", "none"]

_console = Console(stderr=True)

_STYLES: dict[str, str] = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

_mute_lock = threading.Lock()
_mute_depth = 0


def is_console_suppressed() -> bool:
    return _mute_depth > 0


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Mute console log handlers for the block. Nested blocks are counted."""
    global _mute_depth
    with _mute_lock:
        _mute_depth += 1
    try:
        yield
    finally:
        with _mute_lock:
            _mute_depth -= 1


def _is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


def get_console() -> Console:
    return _console


def status(message: str, *, style: Style = "info", indent: int = 0) -> None:
    """Print one status line to stderr."""
    _console.print(f"{' ' * indent}{_STYLES.get(style, '')}{message}", highlight=False)
    get_logger("progress").debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``pluralize(3, "raw profile")`` -> ``"3 raw profiles"``."""
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"


@contextmanager
def spinner(message: str, *, indent: int = 0) -> Iterator[None]:
    """Show a spinner while a captured stage runs.

    Must not wrap a stage that writes to the terminal itself.
    """
    label = f"{' ' * indent}{message}"
    if not _is_tty():
        _console.print(f"{label}...", highlight=False)
        yield
        return

    with suppress_console_logs(), _console.status(f"[cyan]{label}[/cyan]", spinner="dots"):
        yield


@contextmanager
def task(name: str) -> Iterator[None]:
    """Announce a stage, then report it as done (with elapsed time) or failed."""
    log = get_logger("progress")
    status(f"{name}...", style="none")
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - started
        status(f"{name} failed", style="error")
        log.error("task_failed", task=name, elapsed_s=round(elapsed, 2), error=str(e))
        raise
    elapsed = time.perf_counter() - started
    status(f"{name} ({elapsed:.1f}s)", style="success")
    log.debug("task_done", task=name, elapsed_s=round(elapsed, 2))
