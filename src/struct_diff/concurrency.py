"""Concurrency controller: admission pool and child fan-out/fan-in.

The admission pool is a fixed number of tokens shared by every comparison
task of one comparer.  Acquisition never waits: a task that finds the pool
saturated fails with ``ConcurrencyExhaustedError`` instead of queueing.  A
token is held for the whole lifetime of its task, including while the task
waits for its children, so a chain of nested composites holds one token per
level.

Sizing: within one call, only composites and sequences hold a token across
an await.  Scalars, mismatches and cache hits take a token and give it back
in the same step.  Tasks run in FIFO order, so a whole level of containers
is admitted before any of their children run.  One call therefore needs at
most one token per container in the compared value, plus one.  A list of 10
dataclasses that each hold a dict has 21 containers: it needs a pool of 22,
and the default of 10 fails at ``root[0].v``.  Concurrent calls on one
comparer add up.

``fan_out`` runs one asyncio task per child comparison and waits for all of
them before reporting the first failure.  Siblings of a failing child are
never cancelled, and children write their own records to the sink, so an
error never rolls back results that were already produced.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Coroutine, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from struct_diff.errors import ConcurrencyExhaustedError

__all__ = ["AdmissionPool", "fan_out"]


class AdmissionPool:
    """Fixed-capacity, non-blocking concurrency gate.

    Backed by a ``threading.BoundedSemaphore`` so a single comparer can be
    shared by comparisons running on several threads (each with its own
    event loop).

    Args:
        capacity: Number of tokens; must be positive.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            msg = f"capacity must be > 0, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._count_lock = threading.Lock()
        self._in_flight = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_flight(self) -> int:
        """Tokens currently held."""
        with self._count_lock:
            return self._in_flight

    def try_acquire(self) -> bool:
        if not self._semaphore.acquire(blocking=False):
            return False
        with self._count_lock:
            self._in_flight += 1
        return True

    def release(self) -> None:
        with self._count_lock:
            self._in_flight -= 1
        self._semaphore.release()

    @contextmanager
    def admit(self, path: str) -> Iterator[None]:
        """Hold one token for the duration of the block.

        Raises:
            ConcurrencyExhaustedError: If no token is free.
        """
        if not self.try_acquire():
            reason = f"{ConcurrencyExhaustedError.reason} (capacity {self.capacity})"
            raise ConcurrencyExhaustedError(path, reason)
        try:
            yield
        finally:
            self.release()


async def fan_out(children: Sequence[Coroutine[Any, Any, None]]) -> None:
    """Run ``children`` concurrently and wait for every one of them.

    Raises:
        BaseException: The first error among the children, in child order,
            once all of them have finished.
    """
    if not children:
        return
    tasks = [asyncio.create_task(child) for child in children]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
