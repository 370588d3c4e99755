"""Test target discovery: cargo log parsing and on-disk lookup."""

from cargo_kcov.targets.finder import find_test_targets
from cargo_kcov.targets.naming import normalize, package_name_from_identifier
from cargo_kcov.targets.rustc_log import parse_build_output, parse_log

__all__ = [
    "find_test_targets",
    "normalize",
    "package_name_from_identifier",
    "parse_build_output",
    "parse_log",
]
