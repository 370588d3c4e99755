"""Subprocess builder for cargo and kcov invocations."""

from __future__ import annotations

import os
import shlex
import subprocess
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from cargo_kcov.core.errors import CargoError, InternalError
from cargo_kcov.core.logging import get_logger

if TYPE_CHECKING:
    from cargo_kcov.runner.options import CoverageOptions

log = get_logger("runner.command")


class ArgType(Enum):
    FLAG = auto()
    SINGLE = auto()
    MULTIPLE = auto()


_ARG_TYPES: dict[str, ArgType] = {
    "--manifest-path": ArgType.SINGLE,
    "--target": ArgType.SINGLE,
    "--jobs": ArgType.SINGLE,
    "--features": ArgType.SINGLE,
    "--release": ArgType.FLAG,
    "--lib": ArgType.FLAG,
    "--no-default-features": ArgType.FLAG,
    "--no-fail-fast": ArgType.FLAG,
    "--all": ArgType.FLAG,
    "--bin": ArgType.MULTIPLE,
    "--example": ArgType.MULTIPLE,
    "--test": ArgType.MULTIPLE,
    "--bench": ArgType.MULTIPLE,
}


class Command:
    """Chainable wrapper around one external program invocation.

    ``subcommand`` names the cargo subcommand (``test``, ``clean``...) and is
    used in error reports; pass an empty string for non-cargo programs.
    """

    def __init__(self, program: str | Path, subcommand: str = "") -> None:
        self.program = str(program)
        self.subcommand = subcommand
        self.argv: list[str] = [self.program]
        if subcommand:
            self.argv.append(subcommand)
        self.env_overrides: dict[str, str] = {}

    def __str__(self) -> str:
        prefix = " ".join(f"{k}={shlex.quote(v)}" for k, v in self.env_overrides.items())
        cmd = shlex.join(self.argv)
        return f"{prefix} {cmd}" if prefix else cmd

    def args(self, *args: str | Path) -> Command:
        self.argv.extend(str(a) for a in args)
        return self

    def forward(self, options: CoverageOptions, *names: str) -> Command:
        """Copy the named command-line options from ``options`` onto the argv."""
        for name in names:
            arg_type = _ARG_TYPES.get(name)
            if arg_type is None:
                raise InternalError.unexpected(f"cannot forward {name}", option=name)
            value = getattr(options, name[2:].replace("-", "_"))
            if arg_type is ArgType.FLAG:
                if value:
                    self.argv.append(name)
            elif arg_type is ArgType.SINGLE:
                if value is not None:
                    self.argv.extend([name, str(value)])
            else:
                for item in value:
                    self.argv.extend([name, item])
        return self

    def env(self, key: str, sep: str, value: str) -> Command:
        """Set ``key``, appending to the inherited value with ``sep`` if present."""
        old = self.env_overrides.get(key, os.environ.get(key))
        self.env_overrides[key] = f"{old}{sep}{value}" if old else value
        return self

    def _environ(self) -> dict[str, str] | None:
        if not self.env_overrides:
            return None
        return {**os.environ, **self.env_overrides}

    def output(self) -> tuple[str, str]:
        """Run to completion with captured output, returning ``(stdout, stderr)``.

        Raises:
            CargoError: if the program cannot be started, exits non-zero, or
                writes output that is not UTF-8.
        """
        log.debug("running_command", command=str(self))
        try:
            result = subprocess.run(
                self.argv,
                capture_output=True,
                env=self._environ(),
                check=False,
            )
        except OSError as e:
            raise CargoError.cannot_run(self.program) from e

        if result.returncode != 0:
            raise CargoError.failed(
                self.subcommand,
                result.returncode,
                result.stderr.decode("utf-8", errors="replace"),
            )

        try:
            stdout = result.stdout.decode("utf-8")
            stderr = result.stderr.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CargoError.not_utf8(self.subcommand) from e
        return stdout, stderr

    def status(self) -> int:
        """Run with inherited stdio and return the exit code.

        Raises:
            OSError: if the program cannot be started.
        """
        log.debug("running_command", command=str(self))
        result = subprocess.run(self.argv, env=self._environ(), check=False)
        return result.returncode


def cargo(program: str, subcommand: str) -> Command:
    return Command(program, subcommand)
