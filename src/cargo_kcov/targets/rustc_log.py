"""Recover test executable paths from ``cargo test --no-run -v`` output.

With ``-v`` cargo echoes every compiler invocation::

    Running `rustc src/lib.rs --crate-name foo --crate-type lib --test
        -C extra-filename=-c04438234561d314 --out-dir /proj/target/debug ...`

A line built with ``--test`` produces a test harness at
``<out-dir>/<crate-name><extra-filename>``. Everything else (build scripts,
plain libraries, binaries, cargo's own status lines) is skipped. The log is
meant for humans and changes between cargo releases, so unrecognized lines are
never an error.
"""

from __future__ import annotations

import shlex
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

RUSTC_LINE_PREFIX = "Running `rustc "
EXTRA_FILENAME_PREFIX = "extra-filename="
BUILD_SCRIPT_CRATE = "build_script_build"


class ScanState(Enum):
    """What the next token of a rustc invocation means."""

    NORMAL = auto()
    EXPECT_CRATE_NAME = auto()
    EXPECT_CONFIG_VALUE = auto()
    EXPECT_OUT_DIR = auto()


_FLAG_STATES = {
    "--crate-name": ScanState.EXPECT_CRATE_NAME,
    "-C": ScanState.EXPECT_CONFIG_VALUE,
    "--out-dir": ScanState.EXPECT_OUT_DIR,
}


@dataclass
class ParsedInvocation:
    """Facts collected from one rustc invocation line."""

    crate_name: str | None = None
    extra_filename: str | None = None
    out_dir: str | None = None
    is_test_confirmed: bool = False

    def target_path(self) -> Path | None:
        if not self.is_test_confirmed or self.crate_name is None:
            return None
        file_name = self.crate_name + (self.extra_filename or "")
        return Path(self.out_dir or "") / file_name


def _tokens(line: str) -> Iterator[str]:
    """Shell-split ``line``, stopping quietly at the first quoting error."""
    lexer = shlex.shlex(line, posix=True)
    lexer.whitespace_split = True
    # a word starting with # is an ordinary argument, not a comment
    lexer.commenters = ""
    try:
        yield from lexer
    except ValueError:
        # unbalanced quote or trailing escape; keep what was read so far
        return


def parse_invocation(line: str) -> ParsedInvocation | None:
    """Scan one log line.

    Returns None for lines that are not rustc invocations and for build
    script compilations.
    """
    trimmed = line.lstrip()
    if not trimmed.startswith(RUSTC_LINE_PREFIX):
        return None

    state = ScanState.NORMAL
    info = ParsedInvocation()

    for token in _tokens(trimmed):
        if state is ScanState.EXPECT_CRATE_NAME:
            if token == BUILD_SCRIPT_CRATE:
                return None
            info.crate_name = token
            state = ScanState.NORMAL
        elif state is ScanState.EXPECT_CONFIG_VALUE:
            if token.startswith(EXTRA_FILENAME_PREFIX):
                info.extra_filename = token[len(EXTRA_FILENAME_PREFIX) :]
            state = ScanState.NORMAL
        elif state is ScanState.EXPECT_OUT_DIR:
            info.out_dir = token
            state = ScanState.NORMAL
        elif token == "--test":
            info.is_test_confirmed = True
        else:
            state = _FLAG_STATES.get(token, ScanState.NORMAL)

    return info


def parse_rustc_command_line(line: str) -> Path | None:
    """Return the test executable built by ``line``, if any."""
    info = parse_invocation(line)
    if info is None:
        return None
    return info.target_path()


def parse_log(text: str) -> list[Path]:
    """Return test executable paths in the order cargo logged them.

    Repeated invocations of the same target are kept.
    """
    targets: list[Path] = []
    for line in text.splitlines():
        target = parse_rustc_command_line(line)
        if target is not None:
            targets.append(target)
    return targets


def parse_build_output(stdout: str, stderr: str) -> list[Path]:
    """Parse both streams of a verbose test build, stderr first.

    Cargo writes its ``Running`` lines to stderr; stdout is scanned too in
    case a wrapper merged the streams.
    """
    return parse_log(stderr) + parse_log(stdout)
