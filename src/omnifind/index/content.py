"""Parallel search inside file contents."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from omnifind.index.search import MAX_RESULTS
from omnifind.models import FileRecord, SearchResult
from omnifind.preview import UnreadableFile, read_utf8

LOGGER = logging.getLogger(__name__)

# Files handed to the pool per round; the result cap is checked between rounds
_BATCH = 64


class ContentSearcher:
    """Finds files whose UTF-8 text contains a query or matches a pattern.

    Files that cannot be read or are not valid UTF-8 never match.
    """

    def __init__(self, pattern: str | re.Pattern[str] | None = None, *, max_workers: int | None = None) -> None:
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.max_workers = max_workers

    def _load(self, path: Path | str) -> Optional[str]:
        try:
            return read_utf8(path)
        except UnreadableFile:
            LOGGER.debug("Skipping unreadable file during content search: %s", path)
            return None

    def _is_match(self, text: str, query: str) -> bool:
        if self.pattern is not None:
            return self.pattern.search(text) is not None
        return query in text

    def _line_hits(self, text: str, query: str) -> List[tuple[int, str, List[str]]]:
        hits = []
        for number, line in enumerate(text.splitlines(), start=1):
            if self.pattern is not None:
                found = [match.group(0) for match in self.pattern.finditer(line)]
            else:
                found = [query] * line.count(query) if query else []
            if found:
                hits.append((number, line, found))
        return hits

    def search_files(self, paths: Sequence[Path | str], query: str) -> List[Path | str]:
        """Return the subset of ``paths`` whose contents match, in input order."""
        if not paths:
            return []

        def check(path: Path | str) -> bool:
            text = self._load(path)
            return text is not None and self._is_match(text, query)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            flags = list(pool.map(check, paths))
        return [path for path, flag in zip(paths, flags) if flag]

    def content_search(self, records: Iterable[FileRecord], query: str) -> List[SearchResult]:
        """One result per matching line, with line number, text and matches."""
        records = list(records)

        def scan(record: FileRecord) -> List[SearchResult]:
            text = self._load(record.path)
            if text is None:
                return []
            return [
                SearchResult(
                    file_path=record.path,
                    name=record.name,
                    size=record.size,
                    modified_time=record.modified_time,
                    line_number=number,
                    content=line,
                    matches=found,
                )
                for number, line, found in self._line_hits(text, query)
            ]

        results: List[SearchResult] = []
        if not records:
            return results
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for start in range(0, len(records), _BATCH):
                for hits in pool.map(scan, records[start:start + _BATCH]):
                    results.extend(hits)
                if len(results) >= MAX_RESULTS:
                    break
        return results[:MAX_RESULTS]
