"""Best-effort report viewer launch.

The report already exists on disk when this runs, so nothing here may fail
the pipeline: every problem is logged and reported as ``False``.
"""

from __future__ import annotations

import sys
from pathlib import Path

from covpipe.core.errors import CovPipeError, ErrorCode
from covpipe.core.logging import get_logger
from covpipe.pipeline.executor import Executor

log = get_logger("viewer")


def default_viewer_command(platform: str = sys.platform) -> str:
    """Platform opener for local files."""
    if platform == "darwin":
        return "open"
    if platform.startswith("win"):
        return "explorer"
    return "xdg-open"


def launch_viewer(
    executor: Executor,
    target: Path,
    *,
    command: str | None = None,
    timeout: float | None = None,
) -> bool:
    """Open ``target`` in a viewer. Returns True if the viewer started cleanly."""
    viewer = command or default_viewer_command()

    if not target.exists():
        log.warning("viewer_skipped", reason="report_missing", target=str(target))
        return False

    try:
        result = executor.run(
            [viewer, str(target)], stage="viewer", timeout=timeout, capture=False
        )
    except CovPipeError as e:
        log.warning("viewer_failed", code=ErrorCode.VIEWER_FAILED.name, viewer=viewer, error=str(e))
        return False

    if not result.ok:
        log.warning(
            "viewer_failed",
            code=ErrorCode.VIEWER_FAILED.name,
            viewer=viewer,
            exit_code=result.exit_code,
            stderr=result.stderr.strip(),
        )
        return False

    log.debug("viewer_launched", viewer=viewer, target=str(target))
    return True
