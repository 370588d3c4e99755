"""Cargo subcommands used by a coverage run."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from cargo_kcov.config.models import CargoConfig
from cargo_kcov.core.errors import CargoError
from cargo_kcov.core.logging import get_logger
from cargo_kcov.runner.command import cargo
from cargo_kcov.runner.options import CoverageOptions
from cargo_kcov.targets.naming import normalize, package_name_from_identifier
from cargo_kcov.targets.rustc_log import parse_build_output

log = get_logger("runner.cargo")

_BUILD_OPTIONS = (
    "--lib",
    "--bin",
    "--example",
    "--test",
    "--bench",
    "--jobs",
    "--features",
    "--target",
    "--manifest-path",
    "--release",
    "--no-default-features",
    "--no-fail-fast",
    "--all",
)


@dataclass(frozen=True)
class CargoMetadata:
    """The parts of ``cargo metadata`` we need."""

    target_directory: Path
    workspace_root: Path


def get_pkgid(config: CargoConfig, options: CoverageOptions) -> str:
    """Return the package ID of the current package, e.g. ``file:///p/foo#0.1.0``."""
    stdout, _ = cargo(config.path, "pkgid").forward(options, "--manifest-path").output()
    return stdout.strip()


def get_metadata(config: CargoConfig, options: CoverageOptions) -> CargoMetadata:
    """Read the target and workspace directories from ``cargo metadata``."""
    stdout, _ = (
        cargo(config.path, "metadata")
        .args("--no-deps", "--format-version", "1")
        .forward(options, "--manifest-path")
        .output()
    )
    try:
        data = json.loads(stdout)
        return CargoMetadata(
            target_directory=Path(data["target_directory"]),
            workspace_root=Path(data["workspace_root"]),
        )
    except json.JSONDecodeError as e:
        raise CargoError.invalid_json("metadata", str(e)) from e
    except (KeyError, TypeError) as e:
        raise CargoError.invalid_json("metadata", f"missing field {e}") from e


def clean(config: CargoConfig, options: CoverageOptions, pkgid: str) -> None:
    """Remove the package's artifacts so the rebuild logs every test binary."""
    (
        cargo(config.path, "clean")
        .args("--package", pkgid)
        .forward(options, "--manifest-path", "--target", "--release")
        .output()
    )


def build_tests(config: CargoConfig, options: CoverageOptions) -> list[Path]:
    """Build the test executables and return their paths from the verbose log."""
    command = (
        cargo(config.path, "test")
        .args("--no-run", "-v", "--color", "never")
        .env("RUSTFLAGS", " ", config.rustflags)
        .forward(options, *_BUILD_OPTIONS)
    )
    stdout, stderr = command.output()
    targets = parse_build_output(stdout, stderr)
    log.debug("build_log_parsed", count=len(targets))
    return targets


def profile_directory(metadata: CargoMetadata, options: CoverageOptions) -> Path:
    """``<target dir>[/<triple>]/<debug|release>``."""
    base = metadata.target_directory
    if options.target:
        base = base / options.target
    return base / options.profile


def deps_directory(metadata: CargoMetadata, options: CoverageOptions) -> Path:
    """Where cargo puts test harnesses.

    Current cargo writes them to ``deps/``; very old releases wrote them next
    to the regular binaries.
    """
    profile_dir = profile_directory(metadata, options)
    deps = profile_dir / "deps"
    return deps if deps.is_dir() else profile_dir


def build_filters(options: CoverageOptions, pkgid: str) -> set[str]:
    """Filename stems selected by ``--lib``/``--bin``/``--example``/``--test``/``--bench``."""
    names = (*options.bin, *options.example, *options.test, *options.bench)
    filters = {normalize(name) for name in names}
    if options.lib:
        filters.add(package_name_from_identifier(pkgid))
    return filters
