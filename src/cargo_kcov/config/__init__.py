"""Config module exports."""

from cargo_kcov.config.loader import load_config
from cargo_kcov.config.models import (
    CargoConfig,
    CargoKcovConfig,
    KcovConfig,
    LoggingConfig,
    OutputConfig,
)

__all__ = [
    "load_config",
    "CargoConfig",
    "CargoKcovConfig",
    "KcovConfig",
    "LoggingConfig",
    "OutputConfig",
]
