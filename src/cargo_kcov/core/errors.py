"""cargo-kcov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Cargo
- 4xxx: kcov
- 5xxx: Test targets
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Cargo (3xxx)
    CARGO_NOT_RUNNABLE = 3001
    CARGO_FAILED = 3002
    CARGO_OUTPUT_NOT_UTF8 = 3003
    CARGO_INVALID_JSON = 3004

    # kcov (4xxx)
    KCOV_UNSUPPORTED_OS = 4001
    KCOV_TOO_OLD = 4002
    KCOV_NOT_INSTALLED = 4003
    KCOV_FAILED = 4004
    COVERAGE_DIRECTORY_UNCREATABLE = 4005
    COVERALLS_ID_MISSING = 4006

    # Test targets (5xxx)
    TARGETS_DIRECTORY_UNREADABLE = 5001
    TARGETS_NOT_FOUND = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class KcovError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'KCOV_TOO_OLD')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(KcovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"cannot parse config file {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"invalid config value for `{field}`: {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CargoError(KcovError):
    """Errors from running cargo subcommands."""

    @classmethod
    def cannot_run(cls, program: str) -> "CargoError":
        return cls(
            code=ErrorCode.CARGO_NOT_RUNNABLE,
            message="cannot run cargo",
            details={"program": program},
        )

    @classmethod
    def failed(cls, subcommand: str, status: int, stderr: str) -> "CargoError":
        return cls(
            code=ErrorCode.CARGO_FAILED,
            message="cargo subcommand failure",
            details={"subcommand": subcommand, "status": status, "stderr": stderr},
        )

    @classmethod
    def not_utf8(cls, subcommand: str) -> "CargoError":
        return cls(
            code=ErrorCode.CARGO_OUTPUT_NOT_UTF8,
            message="output is not UTF-8 encoded",
            details={"subcommand": subcommand},
        )

    @classmethod
    def invalid_json(cls, subcommand: str, reason: str) -> "CargoError":
        return cls(
            code=ErrorCode.CARGO_INVALID_JSON,
            message="cannot parse JSON",
            details={"subcommand": subcommand, "reason": reason},
        )


class KcovToolError(KcovError):
    """Errors from locating or running kcov."""

    @classmethod
    def unsupported_os(cls, platform: str) -> "KcovToolError":
        return cls(
            code=ErrorCode.KCOV_UNSUPPORTED_OS,
            message="kcov cannot collect coverage on Windows or OS X.",
            details={"platform": platform},
        )

    @classmethod
    def too_old(cls, found: str, minimum: int) -> "KcovToolError":
        return cls(
            code=ErrorCode.KCOV_TOO_OLD,
            message=f"kcov is too old. v{minimum} or above is required.",
            details={"found": found, "minimum": minimum},
        )

    @classmethod
    def not_installed(cls, program: str) -> "KcovToolError":
        return cls(
            code=ErrorCode.KCOV_NOT_INSTALLED,
            message="kcov not installed.",
            details={"program": program},
        )

    @classmethod
    def failed(cls, target: str, status: int | None = None) -> "KcovToolError":
        return cls(
            code=ErrorCode.KCOV_FAILED,
            message="failed to get coverage",
            details={"target": target, "status": status},
        )

    @classmethod
    def cannot_create_coverage_directory(cls, path: str) -> "KcovToolError":
        return cls(
            code=ErrorCode.COVERAGE_DIRECTORY_UNCREATABLE,
            message="cannot create coverage output directory",
            details={"path": path},
        )

    @classmethod
    def no_coveralls_id(cls) -> "KcovToolError":
        return cls(
            code=ErrorCode.COVERALLS_ID_MISSING,
            message="missing environment variable TRAVIS_JOB_ID for coveralls",
        )


class TargetError(KcovError):
    """Test target discovery errors.

    ``TARGETS_DIRECTORY_UNREADABLE`` wraps an I/O failure (permissions, missing
    path). ``TARGETS_NOT_FOUND`` means the listing worked but nothing matched,
    which usually calls for a rebuild rather than a permissions fix.
    """

    @classmethod
    def directory_unreadable(cls, directory: str, reason: str) -> "TargetError":
        return cls(
            code=ErrorCode.TARGETS_DIRECTORY_UNREADABLE,
            message="cannot find test targets",
            details={"directory": directory, "reason": reason},
        )

    @classmethod
    def not_found(cls, directory: str, filters: list[str]) -> "TargetError":
        return cls(
            code=ErrorCode.TARGETS_NOT_FOUND,
            message="cannot find test targets",
            details={"directory": directory, "filters": filters},
        )


class InternalError(KcovError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
