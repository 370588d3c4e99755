"""User-facing terminal output for the cargo kcov command.

Design principles:
- Everything user-facing goes to stderr, like cargo's own status lines
- Graceful degradation in non-TTY (CI, pipes): no escape codes

Usage::

    from cargo_kcov.core.console import report_error, status

    status("Rebuilding test executables...")

    report_error(err)  # error: ... / note: ... / caused by: ...
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Literal

from rich.console import Console
from rich.markup import escape

from cargo_kcov.core.errors import ErrorCode, KcovError

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

ColorChoice = Literal["auto", "always", "never"]

_console = Console(stderr=True, soft_wrap=True)

_PREFIXES = {
    "success": "[green]✓[/green] ",
    "info": "  ",
    "none": "",
}

_KCOV_INSTALL_URL = "https://users.rust-lang.org/t/650"


def _get_logger() -> BoundLogger:
    from cargo_kcov.core.logging import get_logger

    return get_logger("console")


def _colorless_terminal() -> bool:
    # TERM=none is not covered by rich's own NO_COLOR / TERM=dumb handling
    return os.environ.get("TERM", "") in ("none", "dumb")


def configure_console(color: ColorChoice = "auto") -> Console:
    """Rebuild the shared console for the requested color mode."""
    global _console
    if color == "always":
        _console = Console(stderr=True, soft_wrap=True, force_terminal=True)
    elif color == "never" or _colorless_terminal():
        _console = Console(stderr=True, soft_wrap=True, no_color=True, force_terminal=False)
    else:
        _console = Console(stderr=True, soft_wrap=True)
    return _console


def get_console() -> Console:
    """Get the shared Rich console instance."""
    return _console


def status(message: str, *, style: str = "info") -> None:
    """Print a progress line. ``message`` is plain text, never markup."""
    _console.print(_PREFIXES.get(style, "") + escape(message), highlight=False)
    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 executable" / "3 executables" style strings."""
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural or singular + 's'}"


def _label(text: str, color: str) -> None:
    _console.print(f"[bold {color}]{text}[/bold {color}] ", end="", highlight=False)


def _shell_hint(command: str) -> None:
    _console.print(f"    [white]$[/white] {escape(command)}", highlight=False)
    _console.print()


def report_error(error: KcovError) -> None:
    """Print an error report to stderr.

    Layout::

        error: <description>
        note: cargo <subcommand> exited with code <status>   (cargo failures)
        <captured stderr>
        caused by: <chained exception>
        note: <how to fix it>                                (selected codes)
    """
    _label("error:", "red")
    _console.print(escape(error.message), highlight=False)

    if error.code == ErrorCode.CARGO_FAILED:
        _label("note:", "yellow")
        _console.print(
            f"cargo {error.details['subcommand']} exited with code {error.details['status']}",
            highlight=False,
        )
        captured = error.details.get("stderr") or ""
        if captured:
            _console.print(escape(captured.rstrip("\n")), highlight=False)

    cause = error.__cause__
    if cause is not None:
        _label("caused by:", "yellow")
        _console.print(escape(str(cause)), highlight=False)

    if error.code in (ErrorCode.KCOV_TOO_OLD, ErrorCode.KCOV_NOT_INSTALLED):
        _label("note:", "green")
        _console.print(
            f"you may follow [underline]{_KCOV_INSTALL_URL}[/underline] to install kcov:",
            highlight=False,
        )
        _console.print()
        _shell_hint("sudo apt-get install cmake g++ pkg-config jq")
        _shell_hint(
            "sudo apt-get install "
            "libcurl4-openssl-dev libelf-dev libdw-dev binutils-dev libiberty-dev"
        )
        _shell_hint("cargo kcov --print-install-kcov-sh | sh")
    elif error.code == ErrorCode.TARGETS_NOT_FOUND:
        _label("note:", "green")
        _console.print("try a clean rebuild first:", highlight=False)
        _console.print()
        _shell_hint(
            'cargo clean && RUSTFLAGS="-C link-dead-code" cargo test --no-run && '
            "cargo kcov --no-clean-rebuild"
        )

    _get_logger().debug("error_reported", **error.to_dict())
