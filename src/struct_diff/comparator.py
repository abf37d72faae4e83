"""StructComparer: concurrent, path-addressed structural diff engine.

This is the central wiring layer between the shape classifier, the
admission pool, the visited-pair cache and the result sink.

Architecture:
- compare() runs acompare() on a private event loop.  acompare() sets one
  deadline for the whole comparison and starts the root task.
- Every task runs the same steps in order: cancellation/deadline check,
  depth check, non-blocking admission, visited-pair check, presence check,
  type check, then dispatch on shape.
- Composites spawn one task per surviving member and sequences one task per
  index; both wait for all children before re-raising the first child error.
  Scalars are compared inline.
- Differences are written to the sink by the task that finds them, so a
  failure elsewhere in the tree never loses records already produced.

Records are accumulated across calls until reset(); callers must not rely
on their order, only on the set being complete for a successful call.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Coroutine
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import numpy as np

from struct_diff.cache import VisitedPairCache
from struct_diff.concurrency import AdmissionPool, fan_out
from struct_diff.config import ComparerConfig, Option
from struct_diff.errors import (
    ComparisonCancelledError,
    ComparisonTimeoutError,
    DepthExceededError,
    InvalidValueError,
    StructDiffError,
)
from struct_diff.result import DifferenceKind, DifferenceRecord
from struct_diff.shape import (
    MISSING,
    MemberRegistry,
    Shape,
    TagSyntax,
    classify,
    default_registry,
    member_value,
    members_of,
)
from struct_diff.sink import ResultSink

__all__ = ["StructComparer", "new_comparer"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Signal:
    """Cancellation state shared by every task of one top-level comparison.

    ``scope`` is a per-call token that keys PATH-mode visits to this call.
    """

    deadline: float
    cancel_event: threading.Event | None
    scope: object = field(default_factory=object)

    def check(self, path: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ComparisonCancelledError(path)
        if time.monotonic() >= self.deadline:
            raise ComparisonTimeoutError(path)


def _budget(timeout: float | timedelta) -> float:
    seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else timeout
    if seconds <= 0:
        msg = f"timeout must be > 0, got {timeout!r}"
        raise ValueError(msg)
    return float(seconds)


def _member_path(path: str, name: Any) -> str:
    if isinstance(name, str):
        return f"{path}.{name}"
    return f"{path}[{name!r}]"


def _deep_equal(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        return bool(np.array_equal(a, b))
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        # == returned something without a truth value (e.g. an array-like)
        return bool(np.array_equal(a, b))


class StructComparer:
    """Reusable structural comparer.

    One instance owns its configuration, its admission pool, its visited-pair
    cache and its result sink.  Instances are safe to share between threads;
    the pool and the cache are shared by all of their comparisons.

    Example::

        from struct_diff import StructComparer, ComparerConfig, case_insensitive

        comparer = StructComparer(
            ComparerConfig(
                ignored_field_names={"Age"},
                custom_comparators={"Name": case_insensitive},
            )
        )
        for record in comparer.compare(person1, person2):
            print(record.describe())
        comparer.reset()
    """

    def __init__(
        self,
        config: ComparerConfig | None = None,
        *,
        registry: MemberRegistry | None = None,
    ) -> None:
        """Initialise the comparer.

        Args:
            config: Comparer options.  Defaults to ``ComparerConfig()``.
            registry: Member metadata side table.  Defaults to the
                process-wide registry filled by ``register_members()``.
        """
        self._config: ComparerConfig = config if config is not None else ComparerConfig()
        self._registry = registry if registry is not None else default_registry
        self._syntax = TagSyntax(
            tag_key=self._config.tag_key,
            ignore_tag=self._config.ignore_tag,
            custom_tag=self._config.custom_tag,
        )
        self._logger = self._config.logger or logger
        self._pool = AdmissionPool(self._config.max_concurrent_tasks)
        self._visited = VisitedPairCache(self._config.cache_mode)
        self._sink = ResultSink()
        self._warned_lock = threading.Lock()
        self._warned: set[tuple[type, Any, str]] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> ComparerConfig:
        return self._config

    @property
    def in_flight(self) -> int:
        """Admission tokens currently held by running tasks."""
        return self._pool.in_flight

    @property
    def visited_count(self) -> int:
        """Number of keys in the visited-pair cache."""
        return len(self._visited)

    def compare(
        self,
        value1: Any,
        value2: Any,
        *,
        timeout: float | timedelta | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[DifferenceRecord]:
        """Compare two values and return every difference recorded so far.

        Blocks until the whole comparison finished, failed or timed out.
        Must not be called from a thread that is running an event loop; use
        ``acompare()`` there.

        Args:
            value1: Left value.
            value2: Right value.
            timeout: Deadline for this call.  Defaults to
                ``config.compare_timeout``.
            cancel_event: Set it from another thread to cancel the comparison.

        Returns:
            Snapshot of the result sink: this call's records plus those of
            earlier calls since the last ``reset()``.

        Raises:
            StructDiffError: The comparison is incomplete.  ``exc.path`` names
                the failing location and ``exc.results`` holds the records
                collected up to the failure.
        """
        return asyncio.run(
            self.acompare(value1, value2, timeout=timeout, cancel_event=cancel_event)
        )

    async def acompare(
        self,
        value1: Any,
        value2: Any,
        *,
        timeout: float | timedelta | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[DifferenceRecord]:
        """Coroutine form of ``compare()``; see there for the contract."""
        budget = self._config.compare_timeout if timeout is None else _budget(timeout)
        signal = _Signal(time.monotonic() + budget, cancel_event)
        root = self._config.root_label

        timer = asyncio.timeout(budget)
        try:
            async with timer:
                await self._compare(signal, root, value1, value2, 0)
        except StructDiffError as exc:
            exc.results = self.get_results()
            raise
        except TimeoutError:
            if not timer.expired():
                raise
            err = ComparisonTimeoutError(root)
            err.results = self.get_results()
            raise err from None
        finally:
            self._visited.end_scope(signal.scope)
        return self.get_results()

    def get_results(self) -> list[DifferenceRecord]:
        """Return a copy of all recorded differences."""
        return self._sink.snapshot()

    def reset(self) -> None:
        """Clear recorded differences and the visited-pair cache.

        Configuration and the admission pool are left untouched.
        """
        with self._sink.exclusive():
            self._sink.clear_locked()
            self._visited.clear()
        self._log("Reset comparer state")

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    async def _compare(
        self,
        signal: _Signal,
        path: str,
        value1: Any,
        value2: Any,
        depth: int,
    ) -> None:
        signal.check(path)
        if depth > self._config.max_depth:
            raise DepthExceededError(path)

        with self._pool.admit(path):
            shape1 = classify(value1, self._registry)
            shape2 = classify(value2, self._registry)
            keyed = shape1 is not Shape.SCALAR or shape2 is not Shape.SCALAR
            if not self._visited.visit(
                path, value1, value2, keyed=keyed, scope=signal.scope
            ):
                self._log("Cache hit for path %s", path)
                return

            if value1 is MISSING or value2 is MISSING:
                raise InvalidValueError(path)

            if type(value1) is not type(value2):
                self._record(
                    path, DifferenceKind.TYPE_MISMATCH, value1, value2, type(value1)
                )
                return

            if shape1 is Shape.COMPOSITE:
                await self._compare_members(signal, path, value1, value2, depth + 1)
            elif shape1 is Shape.SEQUENCE:
                await self._compare_elements(signal, path, value1, value2, depth + 1)
            elif not _deep_equal(value1, value2):
                self._record(
                    path, DifferenceKind.VALUE_MISMATCH, value1, value2, type(value1)
                )

    async def _compare_members(
        self,
        signal: _Signal,
        path: str,
        value1: Any,
        value2: Any,
        depth: int,
    ) -> None:
        comparators = self._config.custom_comparators
        children: list[Coroutine[Any, Any, None]] = []
        try:
            for member in members_of(value1, value2, self._syntax, self._registry):
                name = member.name
                if member.ignored:
                    self._log("Ignoring field %s due to tag", name)
                    continue
                if name in self._config.ignored_field_names:
                    self._log("Ignoring field %s due to config", name)
                    continue

                member_path = _member_path(path, name)
                a = member_value(value1, name)
                b = member_value(value2, name)

                comparator = comparators.get(name)
                if comparator is None and member.comparator is not None:
                    comparator = comparators.get(member.comparator)
                    if comparator is None:
                        self._warn_unresolved(type(value1), name, member.comparator)
                if comparator is not None:
                    if not comparator(member_path, a, b):
                        self._record(
                            member_path, DifferenceKind.CUSTOM_MISMATCH, a, b, type(a)
                        )
                    continue

                children.append(self._compare(signal, member_path, a, b, depth))
        except BaseException:
            for child in children:
                child.close()
            raise

        await fan_out(children)

    async def _compare_elements(
        self,
        signal: _Signal,
        path: str,
        value1: Any,
        value2: Any,
        depth: int,
    ) -> None:
        if len(value1) != len(value2):
            self._record(
                path,
                DifferenceKind.LENGTH_MISMATCH,
                len(value1),
                len(value2),
                type(value1),
            )
            return

        await fan_out(
            [
                self._compare(signal, f"{path}[{index}]", a, b, depth)
                for index, (a, b) in enumerate(zip(value1, value2, strict=True))
            ]
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        path: str,
        kind: DifferenceKind,
        value1: Any,
        value2: Any,
        value_type: type,
    ) -> None:
        self._sink.append(
            DifferenceRecord(
                path=path,
                kind=kind,
                value1=value1,
                value2=value2,
                value_type=value_type,
            )
        )
        self._log("Recorded difference at %s: %s", path, kind)

    def _warn_unresolved(self, cls: type, member: Any, name: str) -> None:
        key = (cls, member, name)
        with self._warned_lock:
            if key in self._warned:
                return
            self._warned.add(key)
        self._logger.warning(
            "Member %s.%s references unknown custom comparator %r; "
            "comparing it structurally",
            cls.__qualname__,
            member,
            name,
        )

    def _log(self, msg: str, *args: Any) -> None:
        if self._config.enable_logging:
            self._logger.debug(msg, *args)


def new_comparer(*options: Option, config: ComparerConfig | None = None) -> StructComparer:
    """Build a StructComparer from option functions applied in order.

    Example::

        comparer = new_comparer(
            with_ignored_fields("Age"),
            with_custom_comparator("Name", case_insensitive),
            with_max_depth(10),
        )
    """
    return StructComparer(ComparerConfig.from_options(*options, base=config))
