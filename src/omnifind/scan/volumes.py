"""Discovery of top-level scan roots."""

from __future__ import annotations

import logging
import os
import string
import sys
from pathlib import Path
from typing import List

LOGGER = logging.getLogger(__name__)


class NoVolumesFound(RuntimeError):
    """Raised when no drive or mount point is accessible."""

    def __init__(self, message: str = "No drives found or accessible.") -> None:
        super().__init__(message)


def _probe_drive_letters() -> List[Path]:
    drives: List[Path] = []
    for letter in string.ascii_uppercase:
        candidate = f"{letter}:\\"
        # isdir() is False for unmounted or unreadable letters
        if os.path.isdir(candidate):
            drives.append(Path(candidate))
    return drives


def list_scan_roots(platform: str | None = None) -> List[Path]:
    """Return every scan root reachable on this machine.

    Windows probes drive letters ``A:`` to ``Z:``; other platforms scan ``/``.
    """
    platform = platform or sys.platform
    if platform == "win32":
        roots = _probe_drive_letters()
    else:
        root = Path("/")
        roots = [root] if os.path.isdir(root) else []

    if not roots:
        raise NoVolumesFound()
    LOGGER.debug("Enumerated scan roots: %s", roots)
    return roots
