"""kcov invocation: version check, per-executable runs and the final merge."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import sys
from pathlib import Path

from cargo_kcov.config.models import KcovConfig
from cargo_kcov.core.errors import KcovToolError
from cargo_kcov.core.logging import get_logger
from cargo_kcov.runner.command import Command

log = get_logger("runner.kcov")

MERGED_DIRECTORY = "kcov-merged"
COVERALLS_ENV = "TRAVIS_JOB_ID"

_VERSION_RE = re.compile(r"(\d+)")


def check_platform(platform: str | None = None) -> None:
    """kcov relies on ptrace/ELF and only works on Linux-like systems."""
    platform = platform or sys.platform
    if platform.startswith(("win32", "cygwin", "darwin")):
        raise KcovToolError.unsupported_os(platform)


def parse_version(text: str) -> int | None:
    """``kcov v36`` -> 36. Returns None if no number is present."""
    match = _VERSION_RE.search(text)
    return int(match.group(1)) if match else None


def check_version(config: KcovConfig) -> int:
    """Make sure kcov is installed and new enough to merge reports.

    Raises:
        KcovToolError: ``KCOV_NOT_INSTALLED`` if kcov cannot be started,
            ``KCOV_TOO_OLD`` if the version is unknown or below the minimum.
    """
    try:
        result = subprocess.run(
            [config.path, "--version"],
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as e:
        raise KcovToolError.not_installed(config.path) from e

    reported = (result.stdout or result.stderr).strip()
    version = parse_version(reported) if result.returncode == 0 else None
    log.debug("kcov_version", reported=reported, version=version)
    if version is None or version < config.min_version:
        raise KcovToolError.too_old(reported, config.min_version)
    return version


def coveralls_id() -> str:
    """Travis job ID that kcov uploads coverage under."""
    job_id = os.environ.get(COVERALLS_ENV)
    if not job_id:
        raise KcovToolError.no_coveralls_id()
    return job_id


def prepare_coverage_directory(path: Path) -> None:
    """Start from an empty coverage directory."""
    try:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
    except OSError as e:
        raise KcovToolError.cannot_create_coverage_directory(str(path)) from e


def _pattern_args(config: KcovConfig) -> list[str]:
    args: list[str] = []
    if config.verify:
        args.append("--verify")
    if config.include_patterns:
        args.append(f"--include-pattern={','.join(config.include_patterns)}")
    if config.exclude_patterns:
        args.append(f"--exclude-pattern={','.join(config.exclude_patterns)}")
    return args


def run_kcov(
    config: KcovConfig,
    coverage_dir: Path,
    target: Path,
    library_dir: Path,
    extra_args: list[str] | None = None,
) -> Path:
    """Run one test executable under kcov and return its report directory."""
    out_dir = coverage_dir / target.name
    command = (
        Command(config.path)
        .args(*_pattern_args(config), *(extra_args or []), out_dir, target)
        .env("LD_LIBRARY_PATH", ":", str(library_dir))
    )
    try:
        returncode = command.status()
    except OSError as e:
        raise KcovToolError.failed(str(target)) from e
    if returncode != 0:
        raise KcovToolError.failed(str(target), returncode)
    log.info("kcov_run_complete", target=str(target), out_dir=str(out_dir))
    return out_dir


def merge(
    config: KcovConfig,
    coverage_dir: Path,
    run_dirs: list[Path],
    coveralls_job_id: str | None = None,
) -> Path:
    """Merge per-executable reports into ``<coverage_dir>/kcov-merged``."""
    command = Command(config.path).args("--merge")
    if coveralls_job_id:
        command.args(f"--coveralls-id={coveralls_job_id}")
    # A target built twice shows up twice in the log but has one report
    command.args(coverage_dir, *dict.fromkeys(run_dirs))
    try:
        returncode = command.status()
    except OSError as e:
        raise KcovToolError.failed(str(coverage_dir)) from e
    if returncode != 0:
        raise KcovToolError.failed(str(coverage_dir), returncode)
    return coverage_dir / MERGED_DIRECTORY
