"""Shared in-memory catalogue of file records."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Tuple

from omnifind.models import FileRecord

LOGGER = logging.getLogger(__name__)


class CatalogueUnavailable(RuntimeError):
    """Raised to readers when the catalogue lock was poisoned."""

    def __init__(self, message: str = "Failed to access file list") -> None:
        super().__init__(message)


class Catalogue:
    """Every :class:`FileRecord` from the latest scan, behind one lock.

    A holder that raises while inside :meth:`locked` poisons the lock.
    Writers recover and carry on with a logged error; readers get
    :class:`CatalogueUnavailable` until the next bulk replace restores a
    clean state.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Tuple[FileRecord, ...] = ()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @contextmanager
    def locked(self, *, recover: bool = True, operation: str = "access") -> Iterator["Catalogue"]:
        """Hold the catalogue lock for the duration of the block."""
        with self._lock:
            if self._poisoned:
                if not recover:
                    LOGGER.error("Catalogue lock poisoned (%s)", operation)
                    raise CatalogueUnavailable()
                LOGGER.error("Catalogue lock poisoned (%s), recovering contents", operation)
            try:
                yield self
            except BaseException:
                self._poisoned = True
                raise

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        with self.locked(operation="clear"):
            self._records = ()

    def replace(self, records: Iterable[FileRecord]) -> int:
        """Swap in a full result set in one critical section."""
        fresh = tuple(records)
        with self.locked(operation="write"):
            self._records = fresh
            self._poisoned = False
            return len(fresh)

    def snapshot(self) -> Tuple[FileRecord, ...]:
        """Consistent view for queries; never a partially merged state."""
        with self.locked(recover=False, operation="read"):
            return self._records

    def records(self) -> List[FileRecord]:
        return list(self.snapshot())
