"""Platform check for "can this file be run".

One implementation is picked at import time so callers never branch on the
platform themselves.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

if os.name == "nt":

    def is_executable(path: Path, mode: int) -> bool:  # noqa: ARG001
        """Windows has no execute bit; executables are recognized by suffix."""
        return path.suffix.lower() == ".exe"

else:

    def is_executable(path: Path, mode: int) -> bool:  # noqa: ARG001
        """True if any of the user/group/other execute bits is set."""
        return bool(mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
