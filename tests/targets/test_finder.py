"""Tests for targets/finder.py module.

Covers:
- build_patterns() pattern construction
- find_test_targets() directory scanning and error reporting
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from cargo_kcov.core.errors import ErrorCode, TargetError
from cargo_kcov.targets.finder import UNFILTERED_PATTERN, build_patterns, find_test_targets

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")

FIRST = "first-d5d6293fc6d22a93"
SECOND = "second-0123456789abcdef"


def _touch(path: Path, mode: int = 0o644) -> Path:
    path.write_bytes(b"")
    path.chmod(mode)
    return path


@pytest.fixture
def deps_dir(tmp_path: Path) -> Path:
    """A cargo deps/ directory with harnesses and the usual clutter."""
    deps = tmp_path / "deps"
    deps.mkdir()
    _touch(deps / "first", 0o755)  # no hash suffix
    _touch(deps / FIRST, 0o755)
    _touch(deps / SECOND, 0o755)
    _touch(deps / f"{FIRST}.d")  # dep-info file, same stem
    _touch(deps / "libfoo.rlib")
    _touch(deps / "libfoo-0123456789abcdef.rlib")  # not executable
    (deps / "first.dSYM").mkdir()
    (deps / f"{FIRST}.dSYM").mkdir()  # directory, same stem
    return deps


class TestBuildPatterns:
    """Pattern construction tests."""

    def test_given_no_filters_when_built_then_catch_all(self) -> None:
        """No filters means the single unfiltered pattern."""
        assert build_patterns([]) == [UNFILTERED_PATTERN]

    def test_given_filters_when_built_then_one_pattern_each(self) -> None:
        """Each filter name gets its own anchored pattern."""
        # Given
        filters = ["first", "second"]

        # When
        patterns = build_patterns(filters)

        # Then
        assert len(patterns) == 2
        assert patterns[0].fullmatch(FIRST)
        assert not patterns[0].fullmatch(SECOND)

    @pytest.mark.parametrize(
        ("stem", "matches"),
        [
            ("foo-0123456789abcdef", True),
            ("foo_bar-0123456789abcdef", True),
            ("foo-bar-0123456789abcdef", False),
            ("foo-0123456789ABCDEF", False),
            ("foo-0123456789abcde", False),
            ("foo-0123456789abcdef0", False),
            ("foo", False),
        ],
    )
    def test_given_stem_when_unfiltered_then_cargo_names_only(
        self, stem: str, matches: bool
    ) -> None:
        """A 16 lower-hex digit suffix after a hyphen-free name is required."""
        assert bool(UNFILTERED_PATTERN.fullmatch(stem)) is matches

    def test_given_regex_metacharacters_when_built_then_matched_literally(self) -> None:
        """Filter names are not interpreted as regular expressions."""
        # Given
        patterns = build_patterns(["a.b"])

        # When / Then
        assert patterns[0].fullmatch("a.b-0123456789abcdef")
        assert not patterns[0].fullmatch("axb-0123456789abcdef")


class TestFindTestTargets:
    """Directory scan tests."""

    def test_given_no_filters_when_scanned_then_executable_cargo_files(
        self, deps_dir: Path
    ) -> None:
        """Directories, non-executables and unhashed names are skipped."""
        # Given
        filters: list[str] = []

        # When
        result = find_test_targets(deps_dir, filters)

        # Then
        assert result == [deps_dir / FIRST, deps_dir / SECOND]

    def test_given_filter_when_scanned_then_only_named_target(self, deps_dir: Path) -> None:
        """A filter restricts results to that target name."""
        # Given
        filters = {"first"}

        # When
        result = find_test_targets(deps_dir, filters)

        # Then
        assert result == [deps_dir / FIRST]

    def test_given_filter_without_match_when_scanned_then_not_found(
        self, deps_dir: Path
    ) -> None:
        """An empty result is an error carrying the directory and filters."""
        # Given
        filters = {"nomatch"}

        # When
        with pytest.raises(TargetError) as exc_info:
            find_test_targets(deps_dir, filters)

        # Then
        err = exc_info.value
        assert err.code == ErrorCode.TARGETS_NOT_FOUND
        assert err.details == {"directory": str(deps_dir), "filters": ["nomatch"]}

    def test_given_empty_directory_when_scanned_then_not_found(self, tmp_path: Path) -> None:
        """A readable but empty directory has no targets."""
        with pytest.raises(TargetError) as exc_info:
            find_test_targets(tmp_path)

        assert exc_info.value.code == ErrorCode.TARGETS_NOT_FOUND

    def test_given_missing_directory_when_scanned_then_unreadable(self, tmp_path: Path) -> None:
        """A listing failure is reported separately, with the OS error chained."""
        # Given
        missing = tmp_path / "does-not-exist"

        # When
        with pytest.raises(TargetError) as exc_info:
            find_test_targets(missing)

        # Then
        err = exc_info.value
        assert err.code == ErrorCode.TARGETS_DIRECTORY_UNREADABLE
        assert err.message == "cannot find test targets"
        assert isinstance(err.__cause__, FileNotFoundError)

    def test_given_hyphenated_filter_when_scanned_then_no_match(self, deps_dir: Path) -> None:
        """Filters are expected already normalized."""
        _touch(deps_dir / "my_test-0123456789abcdef", 0o755)

        with pytest.raises(TargetError):
            find_test_targets(deps_dir, {"my-test"})
        assert find_test_targets(deps_dir, {"my_test"}) == [deps_dir / "my_test-0123456789abcdef"]

    def test_given_dangling_symlink_when_scanned_then_skipped(self, deps_dir: Path) -> None:
        """Entries that cannot be stat'ed are ignored."""
        (deps_dir / "gone-0123456789abcdef").symlink_to(deps_dir / "nowhere")

        result = find_test_targets(deps_dir)

        assert result == [deps_dir / FIRST, deps_dir / SECOND]

    def test_given_same_directory_when_scanned_twice_then_same_result(
        self, deps_dir: Path
    ) -> None:
        """Scanning has no side effects."""
        first = find_test_targets(deps_dir, ["first", "second"])
        second = find_test_targets(deps_dir, ["second", "first", "first"])

        assert first == second

    def test_given_minimal_layout_when_scanned_then_single_harness(
        self, tmp_path: Path
    ) -> None:
        """Only the hashed executable qualifies among common build leftovers."""
        # Given
        _touch(tmp_path / "first")
        _touch(tmp_path / FIRST, 0o755)
        (tmp_path / "first.dSYM").mkdir()
        _touch(tmp_path / "libfoo.rlib")

        # When / Then
        assert find_test_targets(tmp_path) == [tmp_path / FIRST]
        assert find_test_targets(tmp_path, {"first"}) == [tmp_path / FIRST]
        with pytest.raises(TargetError) as exc_info:
            find_test_targets(tmp_path, {"nomatch"})
        assert exc_info.value.code == ErrorCode.TARGETS_NOT_FOUND
