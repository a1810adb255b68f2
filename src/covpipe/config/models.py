"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (COVPIPE__SECTION__KEY)
3. Repo YAML (<repo>/.covpipe.yaml)
4. Global YAML (~/.config/covpipe/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    COVPIPE__<SECTION>__<KEY>=<VALUE>

Examples:
    COVPIPE__REPORT__MODE=detailed
    COVPIPE__REPORT__OUTPUT_DIR=/tmp/coverage
    COVPIPE__VIEWER__ENABLED=true
    COVPIPE__TIMEOUTS__TEST_SEC=900
"""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ReportMode = Literal["summary", "detailed"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVPIPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Progress lines are printed regardless.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ToolsConfig(BaseModel):
    """External tool executables.

    Env vars:
        COVPIPE__TOOLS__CARGO: Build/test tool
        COVPIPE__TOOLS__LLVM_PROFDATA: Profile merge tool
        COVPIPE__TOOLS__LLVM_COV: Coverage engine
    """

    cargo: str = Field(default="cargo", description="Build and test runner executable.")
    llvm_profdata: str = Field(
        default="llvm-profdata",
        description="Profile merger. Must match the LLVM version of the compiler "
        "(rustup's llvm-tools ship one under the sysroot).",
    )
    llvm_cov: str = Field(
        default="llvm-cov",
        description="Coverage engine. Same LLVM version constraint as llvm_profdata.",
    )
    demangler: str | None = Field(
        default=None,
        description="Symbol demangler for the HTML report (e.g. 'rustfilt').",
    )


class BuildConfig(BaseModel):
    """Test invocation settings.

    Env vars:
        COVPIPE__BUILD__TEST_ARGS: JSON list of extra args for the test command
    """

    test_args: list[str] = Field(
        default_factory=list,
        description="Extra arguments for both the test run and build discovery "
        "(e.g. ['--workspace', '--all-features']).",
    )
    test_binary_args: list[str] = Field(
        default_factory=list,
        description="Arguments passed to the test binaries after '--'.",
    )


class ProfilesConfig(BaseModel):
    """Raw profile handling.

    Env vars:
        COVPIPE__PROFILES__PROFILE_DIR: Raw profile directory (relative to repo root)
        COVPIPE__PROFILES__RETAIN_RAW: Keep raw profiles after a successful merge
    """

    profile_dir: str = Field(
        default="target/coverage/profraw",
        description="Directory test processes write raw profiles to.",
    )
    retain_raw: bool = Field(
        default=True,
        description="Keep raw profiles after merging, until the next run clears them.",
    )


class ReportConfig(BaseModel):
    """Report generation.

    Env vars:
        COVPIPE__REPORT__MODE: summary | detailed
        COVPIPE__REPORT__OUTPUT_DIR: Where the merged profile and HTML go
        COVPIPE__REPORT__EXTRA_EXCLUSIONS: JSON list of extra path regexes
    """

    mode: ReportMode = Field(
        default="summary",
        description="summary prints totals; detailed also renders an HTML document.",
    )
    output_dir: str = Field(
        default="target/coverage",
        description="Directory for the merged profile and rendered report.",
    )
    extra_exclusions: list[str] = Field(
        default_factory=list,
        description="Path regexes appended to the built-in exclusion rules.",
    )

    @field_validator("extra_exclusions")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid exclusion regex {pattern!r}: {e}") from e
        return v


class ViewerConfig(BaseModel):
    """Report viewer.

    Env vars:
        COVPIPE__VIEWER__ENABLED: Open the HTML report after a detailed run
        COVPIPE__VIEWER__COMMAND: Viewer executable (default: open / xdg-open)
    """

    enabled: bool = Field(default=False, description="Open the rendered report.")
    command: str | None = Field(
        default=None,
        description="Viewer executable. None picks the platform opener.",
    )


class TimeoutsConfig(BaseModel):
    """Per-stage timeouts in seconds. None disables the limit.

    Env vars:
        COVPIPE__TIMEOUTS__TEST_SEC, COVPIPE__TIMEOUTS__BUILD_SEC,
        COVPIPE__TIMEOUTS__MERGE_SEC, COVPIPE__TIMEOUTS__REPORT_SEC,
        COVPIPE__TIMEOUTS__VIEWER_SEC
    """

    test_sec: float | None = Field(
        default=None,
        description="Instrumented test run. RISK: slow suites need a generous value.",
    )
    build_sec: float | None = Field(default=None, description="Build discovery.")
    merge_sec: float | None = Field(default=300.0, description="Profile merge.")
    report_sec: float | None = Field(default=600.0, description="Report generation.")
    viewer_sec: float | None = Field(default=15.0, description="Viewer launch.")

    @field_validator("test_sec", "build_sec", "merge_sec", "report_sec", "viewer_sec")
    @classmethod
    def validate_positive(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class CovPipeConfig(BaseModel):
    """Root configuration for covpipe.

    All settings can be configured via:
    1. Environment variables: COVPIPE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    profiles: ProfilesConfig = Field(default_factory=ProfilesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
