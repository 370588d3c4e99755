"""cargo kcov command - generate a coverage report via kcov."""

from __future__ import annotations

from pathlib import Path

import click

from cargo_kcov.config.loader import load_config
from cargo_kcov.core.console import configure_console, report_error, status
from cargo_kcov.core.errors import KcovError
from cargo_kcov.core.logging import configure_logging, get_logger, set_run_id
from cargo_kcov.runner.options import CoverageOptions
from cargo_kcov.runner.workflow import run_coverage
from cargo_kcov.templates import get_install_kcov_script

log = get_logger("cli.kcov")


def _filtering_option(name: str, dest: str, help: str):  # noqa: A002
    return click.option(name, dest, multiple=True, metavar="NAME", help=help)


def _config_overrides(kcov_path: str | None, output: Path | None) -> dict[str, dict[str, str]]:
    overrides: dict[str, dict[str, str]] = {}
    if kcov_path:
        overrides["kcov"] = {"path": kcov_path}
    if output:
        overrides["output"] = {"coverage_dir": str(output)}
    return overrides


@click.command()
@click.option("--lib", is_flag=True, help="Test only this package's library")
@_filtering_option("--bin", "bins", "Test only the specified binary")
@_filtering_option("--example", "examples", "Test only the specified example")
@_filtering_option("--test", "tests", "Test only the specified integration test target")
@_filtering_option("--bench", "benches", "Test only the specified benchmark target")
@click.option("-j", "--jobs", metavar="N", help="The number of jobs to run in parallel")
@click.option("--release", is_flag=True, help="Build artifacts in release mode, with optimizations")
@click.option(
    "--features", metavar="FEATURES", help="Space-separated list of features to also build"
)
@click.option("--no-default-features", is_flag=True, help="Do not build the `default` feature")
@click.option("--target", metavar="TRIPLE", help="Build for the target triple")
@click.option(
    "--manifest-path",
    type=click.Path(path_type=Path),
    help="Path to the manifest to build tests for",
)
@click.option("--no-fail-fast", is_flag=True, help="Run all tests regardless of failure")
@click.option("--all", "all_packages", is_flag=True, help="Test all packages in the workspace")
@click.option("--kcov", "kcov_path", metavar="PATH", help="Path to the kcov executable")
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory, default to [target/cov]",
)
@click.option(
    "--no-clean-rebuild",
    is_flag=True,
    help="Do not perform a clean rebuild before collecting coverage. "
    "Reuses test executables already in the target directory.",
)
@click.option(
    "--coveralls",
    is_flag=True,
    help="Upload merged coverage data to coveralls.io from Travis CI",
)
@click.option("--open", "open_report", is_flag=True, help="Open the coverage report on finish")
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"]),
    default="auto",
    show_default=True,
    help="Coloring of error messages",
)
@click.option("-v", "--verbose", is_flag=True, help="Use verbose output")
@click.option(
    "--print-install-kcov-sh",
    is_flag=True,
    help="Print a shell script that builds and installs kcov, then exit",
)
@click.argument("kcov_args", nargs=-1, type=click.UNPROCESSED)
def kcov_command(
    lib: bool,
    bins: tuple[str, ...],
    examples: tuple[str, ...],
    tests: tuple[str, ...],
    benches: tuple[str, ...],
    jobs: str | None,
    release: bool,
    features: str | None,
    no_default_features: bool,
    target: str | None,
    manifest_path: Path | None,
    no_fail_fast: bool,
    all_packages: bool,
    kcov_path: str | None,
    output: Path | None,
    no_clean_rebuild: bool,
    coveralls: bool,
    open_report: bool,
    color: str,
    verbose: bool,
    print_install_kcov_sh: bool,
    kcov_args: tuple[str, ...],
) -> None:
    """Generate coverage report via kcov.

    Arguments after `--` are passed to every kcov invocation.
    """
    configure_console(color)  # type: ignore[arg-type]

    if print_install_kcov_sh:
        click.echo(get_install_kcov_script(), nl=False)
        return

    options = CoverageOptions(
        lib=lib,
        bin=list(bins),
        example=list(examples),
        test=list(tests),
        bench=list(benches),
        jobs=jobs,
        release=release,
        features=features,
        no_default_features=no_default_features,
        target=target,
        manifest_path=manifest_path,
        no_fail_fast=no_fail_fast,
        all=all_packages,
        no_clean_rebuild=no_clean_rebuild,
        coveralls=coveralls,
        open=open_report,
        verbose=verbose,
        kcov_args=list(kcov_args),
    )
    project_root = manifest_path.parent if manifest_path else Path.cwd()

    try:
        config = load_config(project_root, **_config_overrides(kcov_path, output))
        configure_logging(config=config.logging, verbose=verbose)

        set_run_id()
        log.info("coverage_run_start", project_root=str(project_root))
        merged = run_coverage(options, config)
    except KcovError as e:
        report_error(e)
        raise SystemExit(2) from e

    report = merged / "index.html"
    status(f"Coverage report: {report}", style="success")
    if options.open:
        click.launch(str(report))
