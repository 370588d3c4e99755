"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (command-line options)
2. Environment variables (CARGO_KCOV__SECTION__KEY)
3. Project YAML (<project root>/.cargo-kcov.yaml)
4. Global YAML (~/.config/cargo-kcov/config.yaml)
5. Built-in defaults (this file)

Examples:
    CARGO_KCOV__LOGGING__LEVEL=DEBUG
    CARGO_KCOV__KCOV__PATH=/opt/kcov/bin/kcov
    CARGO_KCOV__KCOV__VERIFY=true
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Where one stream of log events goes.

    ``destination`` is ``stderr``, ``stdout`` or an absolute file path
    (``~`` is expanded).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"
    level: LogLevel | None = None  # None: use LoggingConfig.level

    @field_validator("destination")
    @classmethod
    def check_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        expanded = Path(v).expanduser()
        if not expanded.is_absolute():
            raise ValueError(f"log file path must be absolute, got {v!r}")
        return str(expanded)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CARGO_KCOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. User-facing progress is printed regardless.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CargoConfig(BaseModel):
    """Cargo invocation settings.

    Env vars:
        CARGO_KCOV__CARGO__PATH: cargo executable (defaults to $CARGO, then "cargo")
        CARGO_KCOV__CARGO__RUSTFLAGS: flags appended to RUSTFLAGS for the test build
    """

    path: str = Field(
        default_factory=lambda: os.environ.get("CARGO", "cargo"),
        description="cargo executable. Cargo exports $CARGO to its subcommands.",
    )
    rustflags: str = Field(
        default="-C link-dead-code",
        description="Appended to RUSTFLAGS so that unused functions show up as uncovered.",
    )


class KcovConfig(BaseModel):
    """kcov settings.

    Env vars:
        CARGO_KCOV__KCOV__PATH: kcov executable
        CARGO_KCOV__KCOV__MIN_VERSION: oldest accepted kcov release
        CARGO_KCOV__KCOV__VERIFY: pass --verify to kcov
    """

    path: str = Field(default="kcov", description="kcov executable.")
    min_version: int = Field(
        default=30,
        description="Oldest kcov release able to merge results.",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: ["/.cargo", "/usr/lib"],
        description="Source path fragments excluded from the report.",
    )
    include_patterns: list[str] = Field(
        default_factory=list,
        description="If set, only sources matching these fragments are reported.",
    )
    verify: bool = Field(
        default=False,
        description="Pass --verify so kcov checks breakpoints (slower, fixes some crashes).",
    )

    @field_validator("min_version")
    @classmethod
    def validate_min_version(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"min_version must be non-negative, got {v}")
        return v


class OutputConfig(BaseModel):
    """Coverage output settings.

    Env vars:
        CARGO_KCOV__OUTPUT__COVERAGE_DIR: where reports go (default <target dir>/cov)
    """

    coverage_dir: str | None = Field(
        default=None,
        description="Override the coverage directory. Relative paths resolve against the cwd.",
    )


class CargoKcovConfig(BaseModel):
    """Root configuration for cargo-kcov."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cargo: CargoConfig = Field(default_factory=CargoConfig)
    kcov: KcovConfig = Field(default_factory=KcovConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
