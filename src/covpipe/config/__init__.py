"""Config module exports."""

from covpipe.config.loader import load_config, resolve_dir
from covpipe.config.models import (
    CovPipeConfig,
    LoggingConfig,
    ReportConfig,
    ViewerConfig,
)

__all__ = [
    "load_config",
    "resolve_dir",
    "CovPipeConfig",
    "LoggingConfig",
    "ReportConfig",
    "ViewerConfig",
]
