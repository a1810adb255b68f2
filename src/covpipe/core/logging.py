"""Structured logging for pipeline runs.

Events go through structlog into stdlib handlers, one handler per configured
output. Every event emitted while a pipeline run is active carries that
run's ``run_id``, so a JSON log file can be split back into runs.

Console handlers go quiet while a spinner owns the terminal; file handlers
always receive everything.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, TextIO
from uuid import uuid4

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars, unbind_contextvars

if TYPE_CHECKING:
    from covpipe.config.models import LoggingConfig, LogOutputConfig

RUN_ID_KEY = "run_id"


def get_run_id() -> str | None:
    value = get_contextvars().get(RUN_ID_KEY)
    return str(value) if value is not None else None


def set_run_id(run_id: str | None = None) -> str:
    """Bind a run ID (generated if not given) to all subsequent events."""
    rid = run_id or uuid4().hex[:12]
    bind_contextvars(**{RUN_ID_KEY: rid})
    return rid


def clear_run_id() -> None:
    unbind_contextvars(RUN_ID_KEY)


@contextmanager
def run_scope(run_id: str | None = None) -> Iterator[str]:
    """Bind a run ID for the duration of the block."""
    rid = set_run_id(run_id)
    try:
        yield rid
    finally:
        clear_run_id()


class ConsoleSuppressingFilter(logging.Filter):
    """Drops records while a spinner is live. Attached to console handlers only."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from covpipe.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _level(name: str | None, fallback: int = logging.INFO) -> int:
    if not name:
        return fallback
    return logging.getLevelNamesMapping().get(name.upper(), fallback)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _formatter(fmt: str, *, colors: bool) -> logging.Formatter:
    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
        tail: list[structlog.types.Processor] = [structlog.processors.dict_tracebacks]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)
        tail = []
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *tail,
            renderer,
        ],
    )


def _handler(output: LogOutputConfig) -> logging.Handler:
    streams: dict[str, TextIO] = {"stderr": sys.stderr, "stdout": sys.stdout}
    stream = streams.get(output.destination)
    handler: logging.Handler
    if stream is not None:
        handler = logging.StreamHandler(stream)
        handler.addFilter(ConsoleSuppressingFilter())
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")

    colors = stream is not None and stream.isatty()
    handler.setFormatter(_formatter(output.format, colors=colors))
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install one handler per output, replacing any previous setup.

    ``config`` wins over ``json_format``/``level``, which only describe a
    single stderr output.
    """
    from covpipe.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level(config.level)

    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must reach loggers created at import time
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        if isinstance(old, logging.FileHandler):
            old.close()
    root.setLevel(root_level)

    for output in config.outputs:
        handler = _handler(output)
        handler.setLevel(_level(output.level, root_level))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    return logger.bind(logger=name) if name else logger  # type: ignore[no-any-return]
