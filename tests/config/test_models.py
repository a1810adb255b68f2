"""Tests for configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from covpipe.config.models import (
    CovPipeConfig,
    LogOutputConfig,
    ProfilesConfig,
    ReportConfig,
    TimeoutsConfig,
    ViewerConfig,
)


class TestDefaults:
    def test_root_defaults(self) -> None:
        config = CovPipeConfig()

        assert config.logging.level == "WARNING"
        assert config.tools.cargo == "cargo"
        assert config.tools.llvm_profdata == "llvm-profdata"
        assert config.tools.demangler is None
        assert config.build.test_args == []
        assert config.profiles == ProfilesConfig()
        assert config.report.mode == "summary"
        assert config.viewer == ViewerConfig()

    def test_timeout_defaults(self) -> None:
        timeouts = TimeoutsConfig()

        assert timeouts.test_sec is None
        assert timeouts.build_sec is None
        assert timeouts.merge_sec == 300.0
        assert timeouts.report_sec == 600.0
        assert timeouts.viewer_sec == 15.0


class TestReportConfig:
    @pytest.mark.parametrize("mode", ["summary", "detailed"])
    def test_valid_modes(self, mode: str) -> None:
        assert ReportConfig(mode=mode).mode == mode  # type: ignore[arg-type]

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReportConfig(mode="html")  # type: ignore[arg-type]

    def test_extra_exclusions_must_compile(self) -> None:
        with pytest.raises(ValidationError, match="Invalid exclusion regex"):
            ReportConfig(extra_exclusions=["[bad"])

    def test_extra_exclusions_accepted(self) -> None:
        config = ReportConfig(extra_exclusions=[r"/generated/", r"_pb\.rs$"])
        assert config.extra_exclusions == [r"/generated/", r"_pb\.rs$"]


class TestTimeoutsConfig:
    @pytest.mark.parametrize("value", [0, -1, -0.5])
    def test_non_positive_rejected(self, value: float) -> None:
        with pytest.raises(ValidationError, match="positive"):
            TimeoutsConfig(merge_sec=value)

    def test_none_disables(self) -> None:
        assert TimeoutsConfig(report_sec=None).report_sec is None


class TestLogOutputConfig:
    def test_console_destinations(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"

    def test_relative_file_rejected(self) -> None:
        with pytest.raises(ValidationError, match="absolute"):
            LogOutputConfig(destination="logs/covpipe.log")
