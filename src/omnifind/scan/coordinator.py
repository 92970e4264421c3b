"""Scan orchestration: walkers fan in to one collector, then a bulk merge."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence

from omnifind.events import FanOutSink, ScanEventSink
from omnifind.index.catalogue import Catalogue
from omnifind.models import FileRecord, ScanProgress, ScanState
from omnifind.scan.channel import ChannelClosed, ResultChannel, Sender
from omnifind.scan.collector import Collector
from omnifind.scan.volumes import NoVolumesFound, list_scan_roots
from omnifind.scan.walker import TreeWalker

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanSummary:
    roots: List[str] = field(default_factory=list)
    files_per_root: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    collected: int = 0
    catalogue_size: int = 0
    duration: float = 0.0
    aborted: bool = False


class ScanCoordinator:
    """Runs complete scans into a :class:`Catalogue`.

    ``run`` blocks until the scan is merged; ``scan_directory`` launches it
    on a background thread and returns straight away.  Only one scan runs
    at a time.
    """

    def __init__(
        self,
        catalogue: Catalogue,
        sink: ScanEventSink,
        *,
        roots_provider: Callable[[], Sequence[Path]] = list_scan_roots,
        channel_capacity: int = 2048,
        progress_interval: float = 0.5,
    ) -> None:
        self.catalogue = catalogue
        self.sink = sink if isinstance(sink, FanOutSink) else FanOutSink([sink])
        self.roots_provider = roots_provider
        self.channel_capacity = channel_capacity
        self.progress_interval = progress_interval
        self._running = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def is_scanning(self) -> bool:
        return self._running.locked()

    def scan_directory(self) -> bool:
        """Start a background scan; False if one is already in flight."""
        if not self._running.acquire(blocking=False):
            LOGGER.info("Scan requested while another scan is running; ignoring")
            self.sink.scan_log("A scan is already in progress")
            return False
        LOGGER.info("Scan directory command received. Spawning parallel background tasks.")
        self._thread = threading.Thread(
            target=self._run_locked, name="omnifind-scan", daemon=True
        )
        self._thread.start()
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Join the background scan thread; True once no scan is running."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            return not thread.is_alive()
        return True

    def run(self) -> ScanSummary:
        """Scan every root to completion on the calling thread."""
        if not self._running.acquire(blocking=False):
            raise RuntimeError("A scan is already in progress")
        return self._run_locked()

    def _run_locked(self) -> ScanSummary:
        try:
            return self._scan()
        except Exception:
            LOGGER.exception("Scan coordinator failed")
            self.sink.scan_log("Scan failed unexpectedly")
            self.sink.scan_status(ScanState.IDLE)
            return ScanSummary(aborted=True)
        finally:
            self._running.release()

    def _scan(self) -> ScanSummary:
        started = time.perf_counter()
        summary = ScanSummary()

        self.catalogue.clear()
        LOGGER.info("Background scan coordinator started.")
        self.sink.scan_log("Parallel scan started")
        self.sink.scan_status(ScanState.SCANNING)

        try:
            roots = [os.fspath(root) for root in self.roots_provider()]
            if not roots:
                raise NoVolumesFound()
        except NoVolumesFound as exc:
            LOGGER.error("Error getting available drives: %s", exc)
            self.sink.scan_log(f"Error getting available drives: {exc}")
            self.sink.scan_status(ScanState.IDLE)
            summary.aborted = True
            return summary

        total = len(roots)
        summary.roots = roots
        LOGGER.info("Found %d drives: %s", total, roots)
        self.sink.scan_log(f"Found {total} drives: {roots}")

        channel: ResultChannel[FileRecord] = ResultChannel(self.channel_capacity)
        # All senders exist before any walker starts so the channel cannot
        # report completion early.
        senders = [channel.sender() for _ in roots]

        with ThreadPoolExecutor(max_workers=total, thread_name_prefix="omnifind-walker") as pool:
            futures = []
            try:
                for index, (root, sender) in enumerate(zip(roots, senders), start=1):
                    LOGGER.info("Spawning scan task for drive: %s", root)
                    self.sink.scan_progress(
                        ScanProgress(root, index, total, "Task started", files_collected_so_far=0)
                    )
                    futures.append(pool.submit(self._walk_root, root, index, total, sender))
            except BaseException:
                # Walkers already running stop at their next send
                for sender in senders[len(futures):]:
                    sender.close()
                channel.close_receiver()
                raise

            collector = Collector(
                channel, self.sink, total_roots=total, interval=self.progress_interval
            )
            collection_started = time.perf_counter()
            try:
                collected = collector.collect()
            finally:
                # Walkers blocked on a full channel must not outlive a failed collector
                if not channel.receiver_closed:
                    channel.close_receiver()

            for root, future in zip(roots, futures):
                count, error = future.result()
                summary.files_per_root[root] = count
                if error is not None:
                    summary.errors[root] = error

        collection_duration = time.perf_counter() - collection_started
        summary.collected = len(collected)
        LOGGER.info(
            "Result collection finished in %.2fs. Received %d files total.",
            collection_duration,
            len(collected),
        )
        self.sink.scan_log(
            f"Result collection finished ({collection_duration:.2f}s). {len(collected)} files in total."
        )
        self.sink.scan_progress(
            ScanProgress("Done", total, total, "Result collection finished", files_collected_so_far=len(collected))
        )

        write_started = time.perf_counter()
        LOGGER.info("Updating shared file list...")
        summary.catalogue_size = self.catalogue.replace(collected)
        write_duration = time.perf_counter() - write_started
        LOGGER.info(
            "Shared file list updated in %.2fs. Final count: %d", write_duration, summary.catalogue_size
        )
        self.sink.scan_log(
            f"Shared file list updated ({write_duration:.2f}s). Final file count: {summary.catalogue_size}"
        )

        summary.duration = time.perf_counter() - started
        LOGGER.info("Background scan coordination finished in %.2fs.", summary.duration)
        self.sink.scan_log(f"All scan tasks finished ({summary.duration:.2f}s)")
        self.sink.scan_status(ScanState.IDLE)
        return summary

    def _walk_root(
        self, root: str, index: int, total: int, sender: Sender[FileRecord]
    ) -> tuple[int, str | None]:
        """Walk one root; a closed channel only ends this walker."""
        with sender:
            started = time.perf_counter()
            walker = TreeWalker(root, sender, self.sink)
            try:
                LOGGER.info("Task started for drive: %s", root)
                self.sink.scan_log(f"Scanning drive: {root}")
                self.sink.scan_progress(
                    ScanProgress(root, index, total, "Scanning...", files_collected_so_far=0)
                )
                walker.walk()
            except ChannelClosed as exc:
                LOGGER.error("Task error scanning drive %s: %s", root, exc)
                self.sink.scan_log(f"[{root}] Scan error: {exc}")
                return walker.file_count, str(exc)
            except Exception as exc:
                LOGGER.exception("Unexpected error scanning drive %s", root)
                self.sink.scan_log(f"[{root}] Scan error: {exc}")
                return walker.file_count, str(exc)

        duration = time.perf_counter() - started
        LOGGER.info(
            "Task finished for drive %s. Found %d files in %.2fs", root, walker.file_count, duration
        )
        self.sink.scan_log(f"[{root}] Scan complete. Found {walker.file_count} files ({duration:.2f}s)")
        self.sink.scan_progress(
            ScanProgress(root, index, total, "Drive scan complete", files_found_on_root=walker.file_count)
        )
        return walker.file_count, None
