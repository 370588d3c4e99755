"""Core module exports."""

from cargo_kcov.core.errors import (
    CargoError,
    ConfigError,
    ErrorCode,
    InternalError,
    KcovError,
    KcovToolError,
    TargetError,
)
from cargo_kcov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "CargoError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "KcovError",
    "KcovToolError",
    "TargetError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
