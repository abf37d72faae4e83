"""Unit tests for VisitedPairCache.

Tests cover:
- First visit proceeds, repeated visit of the same identity pair is a hit
- Equal but distinct objects are different keys
- Unkeyed (atomic scalar) pairs always proceed in identity mode
- Path mode keys on the path within one comparison scope
- end_scope() forgets path keys of a finished comparison only
- Operands are pinned while their key is stored
- clear() and len()
- Concurrent visits: exactly one winner per key
"""

from __future__ import annotations

import gc
import threading
import weakref

from struct_diff.cache import VisitedPairCache
from struct_diff.config import CacheMode


class _Node:
    pass


class TestIdentityMode:
    def test_first_visit_proceeds(self) -> None:
        cache = VisitedPairCache()
        assert cache.visit("root", [1], [1], keyed=True) is True

    def test_same_pair_on_another_path_is_a_hit(self) -> None:
        cache = VisitedPairCache(CacheMode.IDENTITY)
        a, b = [1], [2]
        assert cache.visit("root.x", a, b, keyed=True) is True
        assert cache.visit("root.y", a, b, keyed=True) is False

    def test_equal_but_distinct_objects_are_distinct_keys(self) -> None:
        cache = VisitedPairCache()
        assert cache.visit("root", [1], [1], keyed=True) is True
        assert cache.visit("root", [1], [1], keyed=True) is True
        assert len(cache) == 2

    def test_pair_order_matters(self) -> None:
        cache = VisitedPairCache()
        a, b = [1], [2]
        cache.visit("root", a, b, keyed=True)
        assert cache.visit("root", b, a, keyed=True) is True

    def test_unkeyed_pairs_always_proceed(self) -> None:
        cache = VisitedPairCache()
        assert cache.visit("root[0]", 0, 1, keyed=False) is True
        assert cache.visit("root[1]", 0, 1, keyed=False) is True
        assert len(cache) == 0

    def test_operands_pinned_until_clear(self) -> None:
        cache = VisitedPairCache()
        node = _Node()
        ref = weakref.ref(node)
        cache.visit("root", node, node, keyed=True)
        del node
        gc.collect()
        assert ref() is not None
        cache.clear()
        gc.collect()
        assert ref() is None


class TestPathMode:
    def test_same_path_is_a_hit(self) -> None:
        cache = VisitedPairCache(CacheMode.PATH)
        assert cache.visit("root.a", 1, 2, keyed=False) is True
        assert cache.visit("root.a", 3, 4, keyed=True) is False

    def test_same_pair_on_other_path_proceeds(self) -> None:
        cache = VisitedPairCache(CacheMode.PATH)
        a, b = [1], [2]
        assert cache.visit("root.x", a, b, keyed=True) is True
        assert cache.visit("root.y", a, b, keyed=True) is True

    def test_scopes_are_independent(self) -> None:
        cache = VisitedPairCache(CacheMode.PATH)
        first, second = object(), object()
        assert cache.visit("root", 1, 2, keyed=False, scope=first) is True
        assert cache.visit("root", 1, 2, keyed=False, scope=second) is True
        assert cache.visit("root", 1, 2, keyed=False, scope=first) is False

    def test_end_scope_drops_only_that_scope(self) -> None:
        cache = VisitedPairCache(CacheMode.PATH)
        first, second = object(), object()
        cache.visit("root", 1, 2, keyed=False, scope=first)
        cache.visit("root.a", 1, 2, keyed=False, scope=first)
        cache.visit("root", 1, 2, keyed=False, scope=second)
        cache.end_scope(first)
        assert len(cache) == 1
        assert cache.visit("root", 1, 2, keyed=False, scope=first) is True
        assert cache.visit("root", 1, 2, keyed=False, scope=second) is False

    def test_mode_property(self) -> None:
        assert VisitedPairCache(CacheMode.PATH).mode is CacheMode.PATH


class TestLifecycle:
    def test_end_scope_keeps_identity_keys(self) -> None:
        cache = VisitedPairCache(CacheMode.IDENTITY)
        a, b = [1], [2]
        scope = object()
        cache.visit("root", a, b, keyed=True, scope=scope)
        cache.end_scope(scope)
        assert cache.visit("root", a, b, keyed=True) is False

    def test_clear_allows_revisit(self) -> None:
        cache = VisitedPairCache()
        a, b = [1], [2]
        cache.visit("root", a, b, keyed=True)
        cache.clear()
        assert len(cache) == 0
        assert cache.visit("root", a, b, keyed=True) is True

    def test_single_winner_under_contention(self) -> None:
        cache = VisitedPairCache()
        a, b = [1], [2]
        barrier = threading.Barrier(8)
        wins: list[bool] = []
        lock = threading.Lock()

        def visit() -> None:
            barrier.wait()
            won = cache.visit("root", a, b, keyed=True)
            with lock:
                wins.append(won)

        threads = [threading.Thread(target=visit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert wins.count(True) == 1
