"""ResultSink: append-only store of DifferenceRecords behind a read/write lock.

Writers append one record at a time under exclusive access; readers take
shared access and receive a defensive copy.  ``exclusive()`` lets the owner
run a compound operation (clearing results together with the visited-pair
cache) atomically with respect to both readers and writers.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from struct_diff.result import DifferenceRecord

__all__ = ["ReadWriteLock", "ResultSink"]


class ReadWriteLock:
    """Many readers or one writer.  Writers are preferred once waiting."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ResultSink:
    """Thread-safe accumulator of DifferenceRecords."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._records: list[DifferenceRecord] = []

    def append(self, record: DifferenceRecord) -> None:
        with self._lock.write():
            self._records.append(record)

    def snapshot(self) -> list[DifferenceRecord]:
        """Return a copy of every record, in insertion order."""
        with self._lock.read():
            return list(self._records)

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the write side of the lock for a compound operation."""
        with self._lock.write():
            yield

    def clear_locked(self) -> None:
        """Drop every record; the caller already holds ``exclusive()``."""
        self._records.clear()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)
