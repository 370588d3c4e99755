"""Locate already-built test executables in a cargo output directory.

Used with ``--no-clean-rebuild``: instead of rebuilding and reading cargo's
log, look for files named the way cargo names test harnesses,
``<normalized name>-<16 hex digits>``, that are marked executable.
"""

from __future__ import annotations

import re
import stat
from collections.abc import Iterable
from pathlib import Path

from cargo_kcov.core.errors import TargetError
from cargo_kcov.core.logging import get_logger
from cargo_kcov.targets.executable import is_executable

log = get_logger("targets.finder")

_HASH_SUFFIX = r"-[0-9a-f]{16}"

# Cargo never leaves a hyphen in the name part, so a hyphen before the hash
# means the file is not one of cargo's artifacts.
UNFILTERED_PATTERN = re.compile(rf"^[^-]+{_HASH_SUFFIX}$")


def build_patterns(filters: Iterable[str]) -> list[re.Pattern[str]]:
    """One anchored pattern per filter name, or the catch-all if none."""
    patterns = [re.compile(rf"^{re.escape(name)}{_HASH_SUFFIX}$") for name in filters]
    return patterns or [UNFILTERED_PATTERN]


def _matches_any(stem: str, patterns: list[re.Pattern[str]]) -> bool:
    return any(pattern.fullmatch(stem) for pattern in patterns)


def find_test_targets(directory: Path, filters: Iterable[str] = ()) -> list[Path]:
    """Return the test executables in ``directory``, sorted by path.

    Args:
        directory: Directory to scan (not recursive).
        filters: Normalized target names. Empty means any cargo-named file.

    Raises:
        TargetError: ``TARGETS_DIRECTORY_UNREADABLE`` if the directory cannot be
            listed, ``TARGETS_NOT_FOUND`` if no entry qualifies.
    """
    filter_list = sorted(set(filters))
    patterns = build_patterns(filter_list)

    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise TargetError.directory_unreadable(str(directory), str(e)) from e

    targets: list[Path] = []
    for entry in entries:
        try:
            st = entry.stat()
        except OSError:
            # vanished or dangling symlink
            continue
        if not stat.S_ISREG(st.st_mode):
            continue
        if not is_executable(entry, st.st_mode):
            continue
        if not _matches_any(entry.stem, patterns):
            continue
        targets.append(entry)

    if not targets:
        raise TargetError.not_found(str(directory), filter_list)

    targets.sort()
    log.debug("test_targets_found", directory=str(directory), count=len(targets))
    return targets
