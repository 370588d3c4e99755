"""Template files printed by the kcov command."""

from pathlib import Path


def get_install_kcov_script() -> str:
    """Return the shell script that builds and installs kcov from source."""
    return (Path(__file__).parent / "install-kcov.sh").read_text(encoding="utf-8")


__all__ = ["get_install_kcov_script"]
