"""Notification sinks for scan lifecycle, progress and log lines."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, Iterable, List, Protocol

from omnifind.models import ScanProgress, ScanState

LOGGER = logging.getLogger(__name__)


class ScanEventSink(Protocol):
    def scan_log(self, message: str) -> None: ...

    def scan_status(self, state: ScanState) -> None: ...

    def scan_progress(self, progress: ScanProgress) -> None: ...


@dataclass(slots=True)
class ScanEvent:
    seq: int
    kind: str
    payload: Any
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        payload = self.payload
        if isinstance(payload, ScanProgress):
            payload = asdict(payload)
        elif isinstance(payload, ScanState):
            payload = payload.value
        return {"seq": self.seq, "kind": self.kind, "payload": payload, "timestamp": self.timestamp}


class LoggingSink:
    """Mirrors notifications to the module logger at debug level."""

    def scan_log(self, message: str) -> None:
        LOGGER.debug("%s", message)

    def scan_status(self, state: ScanState) -> None:
        LOGGER.debug("Scan status: %s", ScanState(state).value)

    def scan_progress(self, progress: ScanProgress) -> None:
        LOGGER.debug(
            "[%s %d/%d] %s (found=%s, collected=%s)",
            progress.current_root,
            progress.root_index,
            progress.total_roots,
            progress.message,
            progress.files_found_on_root,
            progress.files_collected_so_far,
        )


class EventBuffer:
    """Thread-safe ring buffer of notifications, read by polling clients."""

    def __init__(self, maxlen: int = 1000) -> None:
        self._events: Deque[ScanEvent] = deque(maxlen=maxlen)
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self.state = ScanState.IDLE

    def _append(self, kind: str, payload: Any) -> None:
        with self._lock:
            self._events.append(ScanEvent(next(self._counter), kind, payload, time.time()))

    def scan_log(self, message: str) -> None:
        self._append("scan_log", message)

    def scan_status(self, state: ScanState) -> None:
        self.state = ScanState(state)
        self._append("scan_status", self.state)

    def scan_progress(self, progress: ScanProgress) -> None:
        self._append("scan_progress", progress)

    def since(self, seq: int = 0) -> List[ScanEvent]:
        with self._lock:
            return [event for event in self._events if event.seq > seq]


class FanOutSink:
    """Forwards to several sinks; a failing sink never blocks the others.

    Delivery is fire-and-forget: errors are logged and dropped.
    """

    def __init__(self, sinks: Iterable[ScanEventSink]) -> None:
        self.sinks = list(sinks)

    def _deliver(self, method: str, payload: Any) -> None:
        for sink in self.sinks:
            try:
                getattr(sink, method)(payload)
            except Exception as exc:
                LOGGER.error("Failed to emit %s: %s", method, exc)

    def scan_log(self, message: str) -> None:
        self._deliver("scan_log", message)

    def scan_status(self, state: ScanState) -> None:
        self._deliver("scan_status", state)

    def scan_progress(self, progress: ScanProgress) -> None:
        self._deliver("scan_progress", progress)
