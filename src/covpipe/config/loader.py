"""Configuration loading.

Layers, lowest to highest precedence:

- built-in defaults (``covpipe.config.models``)
- global file ``~/.config/covpipe/config.yaml``
- repo file ``<repo>/.covpipe.yaml``
- environment, ``COVPIPE__<SECTION>__<KEY>`` (e.g. ``COVPIPE__REPORT__MODE``)
- keyword overrides passed by the CLI

Both YAML files are deep-merged into one layer before pydantic-settings
combines it with the environment and the overrides.
"""

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from covpipe.config.models import (
    BuildConfig,
    CovPipeConfig,
    LoggingConfig,
    ProfilesConfig,
    ReportConfig,
    TimeoutsConfig,
    ToolsConfig,
    ViewerConfig,
)
from covpipe.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/covpipe/config.yaml").expanduser()
REPO_CONFIG_NAME = ".covpipe.yaml"

_file_layer: ContextVar[dict[str, Any] | None] = ContextVar("covpipe_file_layer", default=None)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read one config file; a missing or empty file is an empty mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ConfigError.parse_error(str(path), e.strerror or str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class CovPipeSettings(BaseSettings):
    """Settings root; the file layer is read from the active ``load_config`` call."""

    model_config = SettingsConfigDict(
        env_prefix="COVPIPE__",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    logging: LoggingConfig = LoggingConfig()
    tools: ToolsConfig = ToolsConfig()
    build: BuildConfig = BuildConfig()
    profiles: ProfilesConfig = ProfilesConfig()
    report: ReportConfig = ReportConfig()
    viewer: ViewerConfig = ViewerConfig()
    timeouts: TimeoutsConfig = TimeoutsConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # First source wins
        files = InitSettingsSource(settings_cls, init_kwargs=_file_layer.get() or {})
        return (init_settings, env_settings, files)


def config_files(repo_root: Path) -> list[Path]:
    """Config files consulted for ``repo_root``, lowest precedence first."""
    return [GLOBAL_CONFIG_PATH, repo_root / REPO_CONFIG_NAME]


def load_config(repo_root: Path | None = None, **overrides: Any) -> CovPipeConfig:
    """Resolve the configuration for a repository.

    Args:
        repo_root: Directory holding ``.covpipe.yaml`` (default: cwd).
        **overrides: Per-section values that beat every other layer,
            e.g. ``report={"mode": "detailed"}``.

    Raises:
        ConfigError: A file is unreadable or not YAML, or a value is invalid.
    """
    repo_root = repo_root or Path.cwd()

    layer: dict[str, Any] = {}
    for path in config_files(repo_root):
        layer = _deep_merge(layer, _load_yaml(path))

    token = _file_layer.set(layer)
    try:
        settings = CovPipeSettings(**overrides)
        return CovPipeConfig.model_validate(settings.model_dump())
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(field, first.get("input"), first["msg"]) from e
    finally:
        _file_layer.reset(token)


def resolve_dir(repo_root: Path, configured: str) -> Path:
    """Join a relative configured directory onto the repo root."""
    path = Path(configured).expanduser()
    return path if path.is_absolute() else repo_root / path
