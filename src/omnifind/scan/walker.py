"""Breadth-first traversal of a single scan root."""

from __future__ import annotations

import logging
import os
import stat
from collections import deque
from pathlib import Path
from typing import Deque, Iterable, List

from omnifind.events import ScanEventSink
from omnifind.models import FileRecord
from omnifind.scan.channel import Sender

LOGGER = logging.getLogger(__name__)

# Directory names pruned by case-insensitive equality or substring match.
# Covers OS internals, dependency caches, VCS metadata, build output and VM images.
SKIP_DIR_NAMES: tuple[str, ...] = (
    "Windows",
    "Program Files",
    "Program Files (x86)",
    "$Recycle.Bin",
    "System Volume Information",
    "Recovery",
    "Config.Msi",
    "swapfile",
    "AppData",
    "Application Data",
    "Local Settings",
    "Library",
    "node_modules",
    "target",
    "vendor",
    "venv",
    ".git",
    ".hg",
    ".svn",
    "__pycache__",
    ".pyc",
    ".pyo",
    ".class",
    ".jar",
    ".gradle",
    ".m2",
    ".cache",
    "cache",
    "Temp",
    "tmp",
    "Downloads",
    ".vscode",
    ".vscode-server",
    ".idea",
    "Pods",
    ".npm",
    ".cargo",
    ".rustup",
    ".vdi",
    ".vmdk",
    ".pvm",
)

# Pseudo filesystems, pruned by absolute path.
SKIP_ABSOLUTE_PATHS: frozenset[str] = frozenset({"/dev", "/proc", "/sys"})

_SKIP_LOWER = tuple(name.lower() for name in SKIP_DIR_NAMES)

_FILE_ATTRIBUTE_HIDDEN = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2)


def is_hidden(name: str, stat_result: os.stat_result | None = None) -> bool:
    """Leading-dot names, plus the hidden attribute where the platform has one."""
    if name.startswith("."):
        return True
    attributes = getattr(stat_result, "st_file_attributes", 0) if stat_result else 0
    return bool(attributes & _FILE_ATTRIBUTE_HIDDEN)


def is_skipped_name(name: str, skip_names: Iterable[str] = _SKIP_LOWER) -> bool:
    lowered = name.lower()
    return any(skip == lowered or skip in lowered for skip in skip_names)


def should_prune(path: str, name: str, stat_result: os.stat_result | None = None) -> bool:
    """True when a directory must be neither descended into nor emitted."""
    return (
        path in SKIP_ABSOLUTE_PATHS
        or is_hidden(name, stat_result)
        or is_skipped_name(name)
    )


class TreeWalker:
    """Walks one scan root and sends a :class:`FileRecord` per regular file.

    Traversal uses an explicit FIFO of pending directories, so arbitrarily
    deep trees never grow the call stack.  Unreadable directories and
    entries are skipped; only a closed channel aborts the walk.
    """

    def __init__(self, root: Path | str, sender: Sender[FileRecord], sink: ScanEventSink) -> None:
        self.root = os.fspath(root)
        self.sender = sender
        self.sink = sink
        self.file_count = 0

    def walk(self) -> int:
        """Traverse to completion and return the number of files emitted.

        Raises ``ChannelClosed`` if the collector stops receiving.
        """
        pending: Deque[str] = deque([self.root])

        while pending:
            directory = pending.popleft()
            if not os.path.isdir(directory):
                continue
            LOGGER.debug("Processing directory: %s", directory)

            entries = self._list_directory(directory)
            for entry in entries:
                try:
                    entry_stat = entry.stat(follow_symlinks=False)
                except OSError:
                    continue

                if stat.S_ISREG(entry_stat.st_mode):
                    self.sender.send(FileRecord.from_stat(entry.path, entry_stat))
                    self.file_count += 1
                elif stat.S_ISDIR(entry_stat.st_mode):
                    if should_prune(entry.path, entry.name, entry_stat):
                        LOGGER.debug("Skipping directory: %s", entry.path)
                        continue
                    pending.append(entry.path)

        return self.file_count

    def _list_directory(self, directory: str) -> List[os.DirEntry]:
        try:
            with os.scandir(directory) as iterator:
                return list(iterator)
        except (PermissionError, FileNotFoundError) as exc:
            LOGGER.debug("Skipping inaccessible directory: %s (%s)", directory, type(exc).__name__)
        except OSError as exc:
            LOGGER.warning("Could not read directory: %s (%s)", directory, exc)
            self.sink.scan_log(f"Warning [{directory}]: cannot read directory: {exc}")
        return []
