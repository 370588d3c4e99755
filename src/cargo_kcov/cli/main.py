"""cargo-kcov CLI - invoked by cargo as `cargo kcov`."""

import click

from cargo_kcov import __version__
from cargo_kcov.cli.kcov import kcov_command


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="cargo-kcov")
def cli() -> None:
    """Generate coverage report via kcov."""


cli.add_command(kcov_command, name="kcov")


if __name__ == "__main__":
    cli()
