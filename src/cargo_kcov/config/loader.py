"""Layered configuration for a coverage run.

Later layers win:

1. built-in defaults (``config.models``)
2. ``~/.config/cargo-kcov/config.yaml``
3. ``<project root>/.cargo-kcov.yaml`` (the directory holding Cargo.toml)
4. ``CARGO_KCOV__<SECTION>__<KEY>`` environment variables
5. command-line options, passed to ``load_config`` as keyword sections
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from cargo_kcov.config.models import (
    CargoConfig,
    CargoKcovConfig,
    KcovConfig,
    LoggingConfig,
    OutputConfig,
)
from cargo_kcov.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/cargo-kcov/config.yaml").expanduser()
PROJECT_CONFIG_NAME = ".cargo-kcov.yaml"


def config_files(project_root: Path) -> list[Path]:
    """YAML files consulted for ``project_root``, lowest precedence first."""
    return [GLOBAL_CONFIG_PATH, project_root / PROJECT_CONFIG_NAME]


def _read_layer(path: Path) -> dict[str, Any]:
    """Parse one YAML file. A missing or empty file is an empty layer."""
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


def _overlay(lower: dict[str, Any], upper: dict[str, Any]) -> dict[str, Any]:
    """Merge ``upper`` onto a copy of ``lower``, section by section."""
    merged = dict(lower)
    for key, value in upper.items():
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            merged[key] = _overlay(below, value)
        else:
            merged[key] = value
    return merged


def _merge_layers(paths: list[Path]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for path in paths:
        merged = _overlay(merged, _read_layer(path))
    return merged


class _YamlLayers(PydanticBaseSettingsSource):
    """Settings source over the already merged YAML files."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return {name: value for name, value in self._data.items() if value is not None}


def _settings_for(yaml_data: dict[str, Any]) -> type[BaseSettings]:
    """Settings class whose file layer is ``yaml_data``."""

    class CargoKcovSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="CARGO_KCOV__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        cargo: CargoConfig = CargoConfig()
        kcov: KcovConfig = KcovConfig()
        output: OutputConfig = OutputConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # first listed wins
            return (init_settings, env_settings, _YamlLayers(settings_cls, yaml_data))

    return CargoKcovSettings


def load_config(project_root: Path | None = None, **overrides: Any) -> CargoKcovConfig:
    """Build the configuration for a run in ``project_root`` (default: cwd).

    ``overrides`` are whole or partial sections from the command line, e.g.
    ``load_config(root, kcov={"path": "/opt/kcov/bin/kcov"})``.

    Raises:
        ConfigError: ``CONFIG_PARSE_ERROR`` for unreadable YAML,
            ``CONFIG_INVALID_VALUE`` for values that fail validation.
    """
    yaml_data = _merge_layers(config_files(project_root or Path.cwd()))
    try:
        settings = _settings_for(yaml_data)(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(map(str, first["loc"]))
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
    return CargoKcovConfig.model_validate(settings.model_dump())
