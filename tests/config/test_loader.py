"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: defaults < global < repo < env < kwargs
- resolve_dir() function
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from covpipe.config import loader
from covpipe.config.loader import (
    REPO_CONFIG_NAME,
    _deep_merge,
    _load_yaml,
    config_files,
    load_config,
    resolve_dir,
)
from covpipe.core.errors import ConfigError, ErrorCode


@pytest.fixture
def global_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at a (not yet existing) temp file."""
    path = tmp_path / "global" / "config.yaml"
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", path)
    return path


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    return root


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("report:\n  mode: detailed\n")

        assert _load_yaml(yaml_file) == {"report": {"mode": "detailed"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("report:\n  mode:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        base = {"report": {"mode": "summary", "output_dir": "out"}}
        override = {"report": {"mode": "detailed"}}
        assert _deep_merge(base, override) == {
            "report": {"mode": "detailed", "output_dir": "out"}
        }

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_when_no_files(self, repo: Path, global_config: Path) -> None:  # noqa: ARG002
        config = load_config(repo)

        assert config.report.mode == "summary"
        assert config.report.output_dir == "target/coverage"
        assert config.profiles.retain_raw is True
        assert config.viewer.enabled is False
        assert config.tools.llvm_cov == "llvm-cov"

    def test_repo_yaml_applied(self, repo: Path, global_config: Path) -> None:  # noqa: ARG002
        (repo / REPO_CONFIG_NAME).write_text(
            "report:\n  mode: detailed\nbuild:\n  test_args: ['--workspace']\n"
        )

        config = load_config(repo)

        assert config.report.mode == "detailed"
        assert config.build.test_args == ["--workspace"]

    def test_repo_overrides_global(self, repo: Path, global_config: Path) -> None:
        global_config.parent.mkdir(parents=True)
        global_config.write_text(
            "tools:\n  llvm_cov: /opt/llvm/bin/llvm-cov\nreport:\n  mode: detailed\n"
        )
        (repo / REPO_CONFIG_NAME).write_text("report:\n  mode: summary\n")

        config = load_config(repo)

        assert config.report.mode == "summary"
        assert config.tools.llvm_cov == "/opt/llvm/bin/llvm-cov"

    def test_env_overrides_yaml(
        self, repo: Path, global_config: Path, monkeypatch: pytest.MonkeyPatch  # noqa: ARG002
    ) -> None:
        (repo / REPO_CONFIG_NAME).write_text("report:\n  mode: summary\n")
        monkeypatch.setenv("COVPIPE__REPORT__MODE", "detailed")

        config = load_config(repo)

        assert config.report.mode == "detailed"

    def test_kwargs_override_env(
        self, repo: Path, global_config: Path, monkeypatch: pytest.MonkeyPatch  # noqa: ARG002
    ) -> None:
        monkeypatch.setenv("COVPIPE__REPORT__OUTPUT_DIR", "/from/env")

        config = load_config(repo, report={"output_dir": "/from/kwargs"})

        assert config.report.output_dir == "/from/kwargs"

    def test_invalid_value_raises_config_error(
        self, repo: Path, global_config: Path  # noqa: ARG002
    ) -> None:
        (repo / REPO_CONFIG_NAME).write_text("report:\n  mode: verbose\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(repo)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert exc_info.value.details["field"] == "report.mode"

    def test_invalid_exclusion_regex_rejected(
        self, repo: Path, global_config: Path  # noqa: ARG002
    ) -> None:
        (repo / REPO_CONFIG_NAME).write_text("report:\n  extra_exclusions: ['(unclosed']\n")

        with pytest.raises(ConfigError):
            load_config(repo)

    def test_malformed_repo_yaml(self, repo: Path, global_config: Path) -> None:  # noqa: ARG002
        (repo / REPO_CONFIG_NAME).write_text("report: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(repo)
        assert exc_info.value.stage == "config"

    def test_file_layer_does_not_leak_between_repos(
        self, tmp_path: Path, global_config: Path  # noqa: ARG002
    ) -> None:
        detailed = tmp_path / "a"
        detailed.mkdir()
        (detailed / REPO_CONFIG_NAME).write_text("report:\n  mode: detailed\n")
        plain = tmp_path / "b"
        plain.mkdir()

        assert load_config(detailed).report.mode == "detailed"
        assert load_config(plain).report.mode == "summary"


class TestConfigFiles:
    def test_global_then_repo(self, repo: Path, global_config: Path) -> None:
        assert config_files(repo) == [global_config, repo / REPO_CONFIG_NAME]


class TestResolveDir:
    def test_relative_joined_to_repo(self, tmp_path: Path) -> None:
        assert resolve_dir(tmp_path, "target/coverage") == tmp_path / "target/coverage"

    def test_absolute_wins(self, tmp_path: Path) -> None:
        absolute = tmp_path / "elsewhere"
        assert resolve_dir(tmp_path / "repo", str(absolute)) == absolute
