"""VisitedPairCache: guard against repeated or cyclic re-comparison.

Before doing any work for a pair of values the engine calls ``visit()``.
Only the call that inserts the key gets ``True`` back; every later call for
the same key gets ``False`` and must treat the pair as already handled.

Keys depend on the cache mode:

- ``CacheMode.IDENTITY``: ``(id(value1), id(value2))``.  The cache keeps a
  reference to both operands for as long as the key is stored, so an id can
  never be recycled by a new object while its key is live.  Pairs of atomic
  scalars are not keyed at all (``visit()`` always returns True for them):
  CPython shares small ints and interned strings between unrelated
  locations, so their identity says nothing about aliasing.
- ``CacheMode.PATH``: ``(scope, path)``, where ``scope`` identifies one
  top-level comparison.  Every location is compared at most once per call;
  the keys of a call are dropped by ``end_scope()`` when it finishes, so a
  reused comparer compares every location again on its next call.

Example::

    from struct_diff.cache import VisitedPairCache
    from struct_diff.config import CacheMode

    cache = VisitedPairCache(CacheMode.IDENTITY)
    shared = {"a": 1}
    cache.visit("root.x", shared, shared, keyed=True)   # True, first visit
    cache.visit("root.y", shared, shared, keyed=True)   # False, same pair
"""

from __future__ import annotations

import threading
from collections.abc import Hashable
from typing import Any

from struct_diff.config import CacheMode

__all__ = ["VisitedPairCache"]


class VisitedPairCache:
    """Thread-safe test-and-insert set of visited comparison keys.

    Args:
        mode: How keys are derived from a visit.
    """

    def __init__(self, mode: CacheMode = CacheMode.IDENTITY) -> None:
        self._mode = CacheMode(mode)
        self._lock = threading.Lock()
        self._seen: dict[Any, tuple[Any, Any] | None] = {}

    @property
    def mode(self) -> CacheMode:
        return self._mode

    def visit(
        self,
        path: str,
        value1: Any,
        value2: Any,
        *,
        keyed: bool,
        scope: Hashable = None,
    ) -> bool:
        """Atomically record a visit.

        Args:
            path: Path of the compared location.
            value1, value2: The operands.
            keyed: Whether the pair takes part in identity keying (False for
                pairs of atomic scalars).  Ignored in PATH mode.
            scope: Token of the top-level comparison making the visit.  Only
                used in PATH mode.

        Returns:
            True if this call recorded the key and the caller should compare
            the pair; False if the key was already present.
        """
        if self._mode is CacheMode.PATH:
            key: Any = (scope, path)
            pinned = None
        elif keyed:
            key = (id(value1), id(value2))
            pinned = (value1, value2)
        else:
            return True

        with self._lock:
            if key in self._seen:
                return False
            self._seen[key] = pinned
            return True

    def end_scope(self, scope: Hashable) -> None:
        """Forget the PATH keys recorded under ``scope``.

        IDENTITY keys outlive the call that recorded them, so this is a no-op
        in IDENTITY mode.
        """
        if self._mode is not CacheMode.PATH:
            return
        with self._lock:
            for key in [k for k in self._seen if k[0] == scope]:
                del self._seen[key]

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
