"""Options shared by the cargo and kcov steps of a coverage run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class CoverageOptions:
    """Everything the user asked for on the command line.

    Attribute names match the long option names with dashes turned into
    underscores, which is what ``Command.forward`` relies on.
    """

    lib: bool = False
    bin: list[str] = field(default_factory=list)
    example: list[str] = field(default_factory=list)
    test: list[str] = field(default_factory=list)
    bench: list[str] = field(default_factory=list)
    jobs: str | None = None
    release: bool = False
    features: str | None = None
    no_default_features: bool = False
    target: str | None = None
    manifest_path: Path | None = None
    no_fail_fast: bool = False
    all: bool = False

    no_clean_rebuild: bool = False
    coveralls: bool = False
    open: bool = False
    verbose: bool = False
    kcov_args: list[str] = field(default_factory=list)

    @property
    def profile(self) -> str:
        return "release" if self.release else "debug"
