"""Core OmniFind data models."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


def _extension_of(path: str) -> Optional[str]:
    suffix = os.path.splitext(os.path.basename(path))[1]
    return suffix[1:].lower() if len(suffix) > 1 else None


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Metadata snapshot of one regular file observed during a scan."""

    path: str
    size: int
    modified_time: datetime
    name: str = field(init=False)

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError("size must be non-negative")
        object.__setattr__(self, "name", os.path.basename(self.path))

    @property
    def extension(self) -> Optional[str]:
        return _extension_of(self.path)

    @classmethod
    def from_stat(cls, path: str, stat_result: os.stat_result) -> "FileRecord":
        return cls(
            path=path,
            size=stat_result.st_size,
            modified_time=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc),
        )


@dataclass(slots=True)
class SearchResult:
    """Query hit; content fields are only filled by content search."""

    file_path: str
    name: str
    size: int
    modified_time: datetime
    line_number: Optional[int] = None
    content: Optional[str] = None
    matches: Optional[List[str]] = None

    @classmethod
    def from_record(cls, record: FileRecord) -> "SearchResult":
        return cls(
            file_path=record.path,
            name=record.name,
            size=record.size,
            modified_time=record.modified_time,
        )


@dataclass(frozen=True, slots=True)
class SearchFilters:
    extension: Optional[str] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None


class ScanState(str, Enum):
    SCANNING = "scanning"
    IDLE = "idle"


@dataclass(frozen=True, slots=True)
class ScanProgress:
    current_root: str
    root_index: int
    total_roots: int
    message: str
    files_found_on_root: Optional[int] = None
    files_collected_so_far: Optional[int] = None
