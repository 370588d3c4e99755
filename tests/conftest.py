"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local cargo_kcov package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of cargo_kcov modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("cargo_kcov"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Undo configure_logging() calls made by CLI tests."""
    yield
    from cargo_kcov.core.logging import reset_logging

    reset_logging()
