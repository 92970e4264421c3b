"""Single consumer draining the result channel."""

from __future__ import annotations

import logging
import time
from typing import Callable, List

from omnifind.events import ScanEventSink
from omnifind.models import FileRecord, ScanProgress
from omnifind.scan.channel import ResultChannel

LOGGER = logging.getLogger(__name__)


class Collector:
    """Buffers every record until all producers are done.

    Progress is reported at most once per ``interval`` seconds. The buffer
    is handed back to the caller, never written into the catalogue here.
    """

    def __init__(
        self,
        channel: ResultChannel[FileRecord],
        sink: ScanEventSink,
        *,
        total_roots: int,
        interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.channel = channel
        self.sink = sink
        self.total_roots = total_roots
        self.interval = interval
        self.clock = clock
        self.progress_emitted = 0

    def collect(self) -> List[FileRecord]:
        collected: List[FileRecord] = []
        last_emit = self.clock()

        for record in self.channel:
            collected.append(record)
            now = self.clock()
            if now - last_emit > self.interval:
                LOGGER.debug("Collected %d files so far...", len(collected))
                self.sink.scan_progress(
                    ScanProgress(
                        current_root="Collecting...",
                        root_index=self.total_roots,
                        total_roots=self.total_roots,
                        message="Collecting results...",
                        files_collected_so_far=len(collected),
                    )
                )
                self.progress_emitted += 1
                last_emit = now

        return collected
