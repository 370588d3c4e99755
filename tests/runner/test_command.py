"""Tests for runner/command.py module."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from cargo_kcov.core.errors import CargoError, ErrorCode, InternalError
from cargo_kcov.runner.command import Command, cargo
from cargo_kcov.runner.options import CoverageOptions


def _completed(
    returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""
) -> subprocess.CompletedProcess[bytes]:
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


class TestCommandBuilding:
    """argv and environment construction."""

    def test_given_subcommand_when_created_then_argv_starts_with_program(self) -> None:
        """The subcommand directly follows the program."""
        command = cargo("cargo", "test").args("--no-run", Path("/x"))
        assert command.argv == ["cargo", "test", "--no-run", "/x"]

    def test_given_no_subcommand_when_created_then_program_only(self) -> None:
        """Non-cargo programs have no subcommand slot."""
        assert Command("kcov").argv == ["kcov"]

    def test_given_options_when_forwarded_then_only_set_values_appear(self) -> None:
        """Flags appear when true, values when set, lists once per item."""
        # Given
        options = CoverageOptions(
            lib=True,
            release=False,
            jobs="4",
            features=None,
            test=["fifth", "sixth"],
            manifest_path=Path("/proj/Cargo.toml"),
        )

        # When
        command = Command("cargo", "test").forward(
            options, "--lib", "--release", "--jobs", "--features", "--test", "--manifest-path"
        )

        # Then
        assert command.argv == [
            "cargo",
            "test",
            "--lib",
            "--jobs",
            "4",
            "--test",
            "fifth",
            "--test",
            "sixth",
            "--manifest-path",
            "/proj/Cargo.toml",
        ]

    def test_given_dashed_option_when_forwarded_then_attribute_found(self) -> None:
        """--no-default-features maps to no_default_features."""
        options = CoverageOptions(no_default_features=True, no_fail_fast=True)

        command = Command("cargo").forward(options, "--no-default-features", "--no-fail-fast")

        assert command.argv == ["cargo", "--no-default-features", "--no-fail-fast"]

    def test_given_unknown_option_when_forwarded_then_internal_error(self) -> None:
        """Forwarding an option with no known shape is a programming error."""
        with pytest.raises(InternalError) as exc_info:
            Command("cargo").forward(CoverageOptions(), "--verbose")

        assert exc_info.value.code == ErrorCode.INTERNAL_ERROR

    def test_given_inherited_variable_when_env_then_value_appended(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Existing values are extended with the separator."""
        monkeypatch.setenv("RUSTFLAGS", "-C opt-level=1")

        command = Command("cargo").env("RUSTFLAGS", " ", "-C link-dead-code")

        assert command.env_overrides == {"RUSTFLAGS": "-C opt-level=1 -C link-dead-code"}

    def test_given_unset_variable_when_env_then_value_used_alone(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """No leading separator when nothing is inherited."""
        monkeypatch.delenv("LD_LIBRARY_PATH", raising=False)

        command = Command("kcov").env("LD_LIBRARY_PATH", ":", "/a")
        command.env("LD_LIBRARY_PATH", ":", "/b")

        assert command.env_overrides == {"LD_LIBRARY_PATH": "/a:/b"}

    def test_given_env_override_when_str_then_shell_quoted(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """String form is a copy-pasteable shell command."""
        monkeypatch.delenv("RUSTFLAGS", raising=False)

        command = Command("cargo", "test").env("RUSTFLAGS", " ", "-C link-dead-code")

        assert str(command) == "RUSTFLAGS='-C link-dead-code' cargo test"


class TestCommandOutput:
    """Captured execution tests."""

    def test_given_success_when_output_then_decoded_streams(self) -> None:
        """stdout and stderr are returned as text."""
        with patch(
            "cargo_kcov.runner.command.subprocess.run",
            return_value=_completed(stdout="ok ✓\n".encode(), stderr=b"log\n"),
        ) as mock_run:
            stdout, stderr = cargo("cargo", "pkgid").output()

        assert (stdout, stderr) == ("ok ✓\n", "log\n")
        assert mock_run.call_args.args[0] == ["cargo", "pkgid"]
        assert mock_run.call_args.kwargs["env"] is None

    def test_given_env_override_when_output_then_merged_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Overrides are layered on top of the current environment."""
        monkeypatch.setenv("HOME", "/home/me")
        monkeypatch.delenv("RUSTFLAGS", raising=False)

        with patch(
            "cargo_kcov.runner.command.subprocess.run", return_value=_completed()
        ) as mock_run:
            cargo("cargo", "test").env("RUSTFLAGS", " ", "-C link-dead-code").output()

        env = mock_run.call_args.kwargs["env"]
        assert env["RUSTFLAGS"] == "-C link-dead-code"
        assert env["HOME"] == "/home/me"

    def test_given_missing_program_when_output_then_cannot_run(self) -> None:
        """Spawn failures become CARGO_NOT_RUNNABLE with the OS error chained."""
        with (
            patch(
                "cargo_kcov.runner.command.subprocess.run",
                side_effect=FileNotFoundError("no such file"),
            ),
            pytest.raises(CargoError) as exc_info,
        ):
            cargo("/nope/cargo", "pkgid").output()

        assert exc_info.value.code == ErrorCode.CARGO_NOT_RUNNABLE
        assert exc_info.value.details == {"program": "/nope/cargo"}
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_given_nonzero_exit_when_output_then_failed_with_stderr(self) -> None:
        """Failures carry the subcommand, exit code and captured stderr."""
        with (
            patch(
                "cargo_kcov.runner.command.subprocess.run",
                return_value=_completed(101, stderr=b"error: could not find `Cargo.toml`\n"),
            ),
            pytest.raises(CargoError) as exc_info,
        ):
            cargo("cargo", "pkgid").output()

        err = exc_info.value
        assert err.code == ErrorCode.CARGO_FAILED
        assert err.message == "cargo subcommand failure"
        assert err.details == {
            "subcommand": "pkgid",
            "status": 101,
            "stderr": "error: could not find `Cargo.toml`\n",
        }

    def test_given_invalid_utf8_when_output_then_not_utf8(self) -> None:
        """Undecodable output is reported rather than mangled."""
        with (
            patch(
                "cargo_kcov.runner.command.subprocess.run",
                return_value=_completed(stdout=b"\xff\xfe"),
            ),
            pytest.raises(CargoError) as exc_info,
        ):
            cargo("cargo", "metadata").output()

        assert exc_info.value.code == ErrorCode.CARGO_OUTPUT_NOT_UTF8
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


class TestCommandStatus:
    """Inherited-stdio execution tests."""

    def test_given_exit_code_when_status_then_returned(self) -> None:
        """status() reports the exit code without raising."""
        with patch(
            "cargo_kcov.runner.command.subprocess.run", return_value=_completed(3)
        ) as mock_run:
            code = Command("kcov").args("--merge").status()

        assert code == 3
        assert "capture_output" not in mock_run.call_args.kwargs

    def test_given_missing_program_when_status_then_os_error_propagates(self) -> None:
        """Callers decide how a spawn failure is reported."""
        with (
            patch(
                "cargo_kcov.runner.command.subprocess.run",
                side_effect=FileNotFoundError(),
            ),
            pytest.raises(FileNotFoundError),
        ):
            Command("kcov").status()
