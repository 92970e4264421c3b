"""Substring and attribute queries over the catalogue."""

from __future__ import annotations

import logging
import time
from itertools import islice
from typing import Callable, Iterable, List, Optional

from omnifind.index.catalogue import Catalogue
from omnifind.models import FileRecord, SearchFilters, SearchResult

LOGGER = logging.getLogger(__name__)

MAX_RESULTS = 500


def matches_text(record: FileRecord, query_lower: str) -> bool:
    return query_lower in record.name.lower() or query_lower in record.path.lower()


def matches_filters(record: FileRecord, filters: SearchFilters) -> bool:
    if filters.extension:
        wanted = filters.extension.lower().lstrip(".")
        if record.extension is None or record.extension != wanted:
            return False
    if filters.min_size is not None and record.size < filters.min_size:
        return False
    if filters.max_size is not None and record.size > filters.max_size:
        return False
    return True


def _take(records: Iterable[FileRecord], predicate: Callable[[FileRecord], bool]) -> List[SearchResult]:
    hits = (record for record in records if predicate(record))
    return [SearchResult.from_record(record) for record in islice(hits, MAX_RESULTS)]


class Searcher:
    """Read-only queries against one consistent catalogue snapshot."""

    def __init__(self, catalogue: Catalogue) -> None:
        self.catalogue = catalogue

    def basic_search(self, query: str) -> List[SearchResult]:
        """Case-insensitive substring match on name or full path.

        An empty query matches every record. At most 500 results.
        """
        started = time.perf_counter()
        query_lower = query.lower()
        results = _take(self.catalogue.snapshot(), lambda record: matches_text(record, query_lower))
        LOGGER.debug(
            "Basic search for %r completed in %.3fs, found %d results (limited)",
            query,
            time.perf_counter() - started,
            len(results),
        )
        return results

    def advanced_search(self, query: str, filters: Optional[SearchFilters] = None) -> List[SearchResult]:
        """Substring match combined with extension and inclusive size bounds."""
        filters = filters or SearchFilters()
        started = time.perf_counter()
        query_lower = query.lower()
        LOGGER.debug("Advanced search started for query: %r, filters: %s", query, filters)

        def predicate(record: FileRecord) -> bool:
            if query_lower and not matches_text(record, query_lower):
                return False
            return matches_filters(record, filters)

        results = _take(self.catalogue.snapshot(), predicate)
        LOGGER.debug(
            "Advanced search completed in %.3fs, found %d results (limited)",
            time.perf_counter() - started,
            len(results),
        )
        return results
