"""File preview and query highlighting."""

from __future__ import annotations

import logging
import mmap
import re
from pathlib import Path

LOGGER = logging.getLogger(__name__)

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"


class UnreadableFile(OSError):
    """The file could not be opened, memory-mapped or decoded as UTF-8."""


def read_utf8(path: Path | str) -> str:
    """Read a whole file through a memory map, requiring valid UTF-8."""
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise UnreadableFile("Failed to open file") from exc

    with handle:
        try:
            size = handle.seek(0, 2)
            if size == 0:
                # mmap rejects empty files
                return ""
            with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as mapped:
                data = mapped[:]
        except (OSError, ValueError) as exc:
            raise UnreadableFile("Failed to memory map file") from exc

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UnreadableFile("Failed to read file content") from exc


class FilePreview:
    """Text preview of a file plus ``<mark>`` highlighting of a query.

    When ``pattern`` is set, highlighting wraps every regex match instead of
    literal occurrences of the query.
    """

    def __init__(self, pattern: str | re.Pattern[str] | None = None) -> None:
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def preview_file(self, path: Path | str) -> str:
        return read_utf8(path)

    def highlight_content(self, content: str, query: str) -> str:
        if self.pattern is not None:
            return self.pattern.sub(lambda match: f"{MARK_OPEN}{match.group(0)}{MARK_CLOSE}", content)
        if not query:
            return content
        return content.replace(query, f"{MARK_OPEN}{query}{MARK_CLOSE}")
