"""Running cargo and kcov: the steps of a coverage run."""

from cargo_kcov.runner.options import CoverageOptions
from cargo_kcov.runner.workflow import run_coverage

__all__ = ["CoverageOptions", "run_coverage"]
