"""Command surface used by the CLI and the HTTP layer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from omnifind.config import AppConfig
from omnifind.events import EventBuffer, FanOutSink, LoggingSink, ScanEventSink
from omnifind.index.catalogue import Catalogue
from omnifind.index.content import ContentSearcher
from omnifind.index.search import Searcher, matches_filters
from omnifind.models import ScanState, SearchFilters, SearchResult
from omnifind.preview import FilePreview, UnreadableFile
from omnifind.scan.coordinator import ScanCoordinator, ScanSummary

LOGGER = logging.getLogger(__name__)


class FileSearchService:
    """Owns the process catalogue and exposes scan/search/preview commands.

    Notifications go to a buffered feed, the logger and any extra sinks.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        sinks: Iterable[ScanEventSink] = (),
        catalogue: Catalogue | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.catalogue = catalogue or Catalogue()
        self.events = EventBuffer(self.config.event_buffer_size)
        self.sink = FanOutSink([self.events, LoggingSink(), *sinks])
        self.searcher = Searcher(self.catalogue)
        self.content_searcher = ContentSearcher()
        self.previewer = FilePreview()
        self.coordinator = ScanCoordinator(
            self.catalogue,
            self.sink,
            roots_provider=self.config.resolve_roots,
            channel_capacity=self.config.channel_capacity,
            progress_interval=self.config.progress_interval,
        )

    @property
    def state(self) -> ScanState:
        return ScanState.SCANNING if self.coordinator.is_scanning else ScanState.IDLE

    def scan_directory(self) -> bool:
        """Accept a scan request; outcomes arrive as notifications."""
        return self.coordinator.scan_directory()

    def run_scan(self) -> ScanSummary:
        return self.coordinator.run()

    def wait_for_scan(self, timeout: float | None = None) -> bool:
        return self.coordinator.wait(timeout)

    def basic_search(self, query: str) -> List[SearchResult]:
        return self.searcher.basic_search(query)

    def advanced_search(self, query: str, filters: Optional[SearchFilters] = None) -> List[SearchResult]:
        return self.searcher.advanced_search(query, filters)

    def content_search(self, query: str, filters: Optional[SearchFilters] = None) -> List[SearchResult]:
        """Search inside catalogued files, one result per matching line.

        ``filters`` narrow the candidate files before any of them is read.
        """
        records = self.catalogue.snapshot()
        if filters is not None:
            records = [record for record in records if matches_filters(record, filters)]
        return self.content_searcher.content_search(records, query)

    def preview_file(self, path: str | Path) -> str:
        """Return the file's text; raises ``UnreadableFile`` on failure."""
        try:
            return self.previewer.preview_file(path)
        except UnreadableFile as exc:
            LOGGER.warning("Preview unavailable for %s: %s", path, exc)
            raise

    def highlight_content(self, content: str, query: str) -> str:
        return self.previewer.highlight_content(content, query)
