"""Bounded multi-producer, single-consumer conduit for scan results."""

from __future__ import annotations

import queue
import threading
import time
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

_POLL_SECONDS = 0.05


class ChannelClosed(RuntimeError):
    """Raised by ``Sender.send`` once the receiving side has gone away."""

    def __init__(self, message: str = "Channel closed") -> None:
        super().__init__(message)


class ResultChannel(Generic[T]):
    """Bounded queue with sender handles and close signalling.

    Producers obtain a :class:`Sender` each and close it when finished.
    Iterating the channel yields items until every sender is closed, so the
    consumer's drain loop ends on its own.  Completion is flagged outside
    the bounded queue, so closing a sender never waits for free capacity.
    A full channel blocks ``send``; a closed receiver makes ``send`` raise
    :class:`ChannelClosed`.
    """

    def __init__(self, capacity: int = 2048) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._open_senders = 0
        self._senders_sealed = False
        self._senders_done = threading.Event()
        self._receiver_closed = threading.Event()

    @property
    def receiver_closed(self) -> bool:
        return self._receiver_closed.is_set()

    def sender(self) -> "Sender[T]":
        with self._lock:
            if self._senders_sealed:
                raise ChannelClosed("All senders already closed")
            self._open_senders += 1
        return Sender(self)

    def close_receiver(self) -> None:
        """Drop the consumer; pending and future sends fail."""
        self._receiver_closed.set()
        # Unblock producers waiting on a full queue
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    def _put(self, item: object) -> None:
        while True:
            if self._receiver_closed.is_set():
                raise ChannelClosed()
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def _release_sender(self) -> None:
        with self._lock:
            self._open_senders -= 1
            if self._open_senders == 0:
                self._senders_sealed = True
                self._senders_done.set()

    def recv(self, timeout: float | None = None) -> T:
        """Return the next item; raises ``ChannelClosed`` once drained.

        Raises ``queue.Empty`` if ``timeout`` elapses first.
        """
        if self._receiver_closed.is_set():
            raise ChannelClosed()
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            # Every item was queued before the flag was set
            finished = self._senders_done.is_set()
            try:
                if finished:
                    return self._queue.get_nowait()
                wait = _POLL_SECONDS
                if deadline is not None:
                    wait = min(wait, max(0.0, deadline - time.monotonic()))
                return self._queue.get(timeout=wait)
            except queue.Empty:
                if finished:
                    self._receiver_closed.set()
                    raise ChannelClosed("All senders closed")
                if deadline is not None and time.monotonic() >= deadline:
                    raise

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.recv()
            except ChannelClosed:
                return


class Sender(Generic[T]):
    """One producer's handle onto a :class:`ResultChannel`."""

    def __init__(self, channel: ResultChannel[T]) -> None:
        self._channel = channel
        self._closed = False

    def send(self, item: T) -> None:
        if self._closed:
            raise ChannelClosed("Sender already closed")
        self._channel._put(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._channel._release_sender()

    def __enter__(self) -> "Sender[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
