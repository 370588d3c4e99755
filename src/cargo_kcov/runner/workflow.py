"""The full coverage run: clean, rebuild, instrument, merge."""

from __future__ import annotations

from pathlib import Path

from cargo_kcov.config.models import CargoKcovConfig
from cargo_kcov.core.console import pluralize, status
from cargo_kcov.core.logging import get_logger
from cargo_kcov.runner import cargo, kcov
from cargo_kcov.runner.options import CoverageOptions
from cargo_kcov.targets.finder import find_test_targets

log = get_logger("runner.workflow")


def coverage_directory(config: CargoKcovConfig, metadata: cargo.CargoMetadata) -> Path:
    if config.output.coverage_dir:
        return Path(config.output.coverage_dir).absolute()
    return metadata.target_directory / "cov"


def collect_targets(
    config: CargoKcovConfig,
    options: CoverageOptions,
    pkgid: str,
    metadata: cargo.CargoMetadata,
) -> list[Path]:
    """Find the test executables to instrument.

    By default the package is cleaned and rebuilt and the paths are read from
    cargo's verbose log. With ``--no-clean-rebuild`` (or when the log names
    nothing, as with cargo releases whose log format we do not recognize) the
    deps directory is scanned instead.
    """
    filters = cargo.build_filters(options, pkgid)

    if not options.no_clean_rebuild:
        if options.verbose:
            status(f"Cleaning {pkgid}...")
        cargo.clean(config.cargo, options, pkgid)

        if options.verbose:
            status("Rebuilding test executables...")
        targets = cargo.build_tests(config.cargo, options)
        if targets:
            return targets
        log.info("build_log_without_targets", pkgid=pkgid)

    search_dir = cargo.deps_directory(metadata, options)
    return find_test_targets(search_dir, filters)


def run_coverage(options: CoverageOptions, config: CargoKcovConfig) -> Path:
    """Run every test executable under kcov and merge the reports.

    Returns:
        The merged report directory (``<coverage dir>/kcov-merged``).

    Raises:
        KcovError: any cargo, kcov or target discovery failure.
    """
    kcov.check_platform()
    kcov.check_version(config.kcov)
    job_id = kcov.coveralls_id() if options.coveralls else None

    pkgid = cargo.get_pkgid(config.cargo, options)
    metadata = cargo.get_metadata(config.cargo, options)

    targets = collect_targets(config, options, pkgid, metadata)
    if options.verbose:
        status(f"Found the following executables: {', '.join(str(t) for t in targets)}")

    cov_dir = coverage_directory(config, metadata)
    kcov.prepare_coverage_directory(cov_dir)

    library_dir = cargo.profile_directory(metadata, options) / "deps"
    run_dirs: list[Path] = []
    status(f"Running kcov on {pluralize(len(targets), 'executable')}...")
    for target in targets:
        run_dirs.append(
            kcov.run_kcov(config.kcov, cov_dir, target, library_dir, options.kcov_args)
        )

    merged = kcov.merge(config.kcov, cov_dir, run_dirs, job_id)
    log.info("coverage_merged", merged=str(merged), targets=len(targets))
    return merged
