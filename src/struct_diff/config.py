"""ComparerConfig, CacheMode and the option functions that build configs.

ComparerConfig is a frozen (immutable) dataclass.  Unlike a validating
config it never rejects a missing, zero or negative optional value: each one
is replaced by its documented default in ``__post_init__``.  Collections
supplied by the caller are copied, so mutating them afterwards has no effect
on a live comparer.

Configs can be written out directly or assembled from an ordered sequence
of option functions::

    from struct_diff.config import ComparerConfig, with_ignored_fields, with_max_depth

    config = ComparerConfig.from_options(with_max_depth(10), with_ignored_fields("Age"))
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum, auto
from types import MappingProxyType

from struct_diff.protocols import CustomComparator

__all__ = [
    "DEFAULT_COMPARE_TIMEOUT",
    "DEFAULT_MAX_CONCURRENT_TASKS",
    "DEFAULT_MAX_DEPTH",
    "CacheMode",
    "ComparerConfig",
    "Option",
    "with_cache_mode",
    "with_compare_timeout",
    "with_custom_comparator",
    "with_custom_comparators",
    "with_ignored_fields",
    "with_logging",
    "with_max_concurrent_tasks",
    "with_max_depth",
    "with_root_label",
    "with_tags",
]

DEFAULT_MAX_CONCURRENT_TASKS = 10
DEFAULT_COMPARE_TIMEOUT = 5.0
DEFAULT_MAX_DEPTH = 100
DEFAULT_IGNORE_TAG = "ignore"
DEFAULT_CUSTOM_TAG = "custom"
DEFAULT_TAG_KEY = "comparer"
DEFAULT_ROOT_LABEL = "root"


class CacheMode(StrEnum):
    """How the visited-pair cache keys a comparison.

    - IDENTITY: by the identity of the two operands.  Protects against
      cycles; a pair reachable through two paths is compared only once.
    - PATH:     by the path string.  Every location is compared; cyclic
      structures stop at ``max_depth``.
    """

    IDENTITY = auto()
    PATH = auto()


def _positive_int(value: int | None, default: int) -> int:
    if value is None or value <= 0:
        return default
    return int(value)


def _seconds(value: float | timedelta | None) -> float:
    if isinstance(value, timedelta):
        value = value.total_seconds()
    if value is None or value <= 0:
        return DEFAULT_COMPARE_TIMEOUT
    return float(value)


@dataclass(frozen=True, slots=True)
class ComparerConfig:
    """Immutable configuration for a StructComparer.

    Attributes:
        max_concurrent_tasks: Capacity of the admission pool shared by every
            comparison task of one comparer (default 10).
        compare_timeout: Deadline in seconds for one top-level comparison.
            A ``timedelta`` is accepted and converted (default 5.0).
        max_depth: Deepest nesting level compared before failing with
            ``DepthExceededError`` (default 100).
        ignored_field_names: Member names never compared.
        custom_comparators: Comparators by name.  A comparator whose name
            equals a member name is applied to that member; member metadata
            may also reference a comparator by name.
        ignore_tag: Metadata token marking a member as ignored.
        custom_tag: Metadata token prefix (``<custom_tag>=<name>``) selecting a
            custom comparator.
        tag_key: Key looked up in dataclass field metadata.
        enable_logging: Emit debug traces through ``logger``.
        logger: Logger for traces.  Defaults to the ``struct_diff.comparator``
            module logger.
        cache_mode: How the visited-pair cache keys comparisons.
        root_label: Path label of the top-level values.
    """

    max_concurrent_tasks: int = DEFAULT_MAX_CONCURRENT_TASKS
    compare_timeout: float = DEFAULT_COMPARE_TIMEOUT
    max_depth: int = DEFAULT_MAX_DEPTH
    ignored_field_names: frozenset[str] = frozenset()
    custom_comparators: Mapping[str, CustomComparator] = field(
        default_factory=lambda: MappingProxyType({})
    )
    ignore_tag: str = DEFAULT_IGNORE_TAG
    custom_tag: str = DEFAULT_CUSTOM_TAG
    tag_key: str = DEFAULT_TAG_KEY
    enable_logging: bool = False
    logger: logging.Logger | None = None
    cache_mode: CacheMode = CacheMode.IDENTITY
    root_label: str = DEFAULT_ROOT_LABEL

    def __post_init__(self) -> None:
        comparators = dict(self.custom_comparators or {})
        for name, comparator in comparators.items():
            if not callable(comparator):
                msg = f"custom comparator {name!r} is not callable: {comparator!r}"
                raise TypeError(msg)
        if isinstance(self.ignored_field_names, str):
            msg = "ignored_field_names must be an iterable of names, not a str"
            raise TypeError(msg)

        _set = object.__setattr__
        _set(
            self,
            "max_concurrent_tasks",
            _positive_int(self.max_concurrent_tasks, DEFAULT_MAX_CONCURRENT_TASKS),
        )
        _set(self, "compare_timeout", _seconds(self.compare_timeout))
        _set(self, "max_depth", _positive_int(self.max_depth, DEFAULT_MAX_DEPTH))
        _set(self, "ignored_field_names", frozenset(self.ignored_field_names or ()))
        _set(self, "custom_comparators", MappingProxyType(comparators))
        _set(self, "ignore_tag", self.ignore_tag or DEFAULT_IGNORE_TAG)
        _set(self, "custom_tag", self.custom_tag or DEFAULT_CUSTOM_TAG)
        _set(self, "tag_key", self.tag_key or DEFAULT_TAG_KEY)
        _set(self, "cache_mode", CacheMode(self.cache_mode))
        _set(self, "root_label", self.root_label or DEFAULT_ROOT_LABEL)

    @classmethod
    def from_options(
        cls,
        *options: Option,
        base: ComparerConfig | None = None,
    ) -> ComparerConfig:
        """Apply ``options`` in order on top of ``base`` (or the defaults)."""
        config = base if base is not None else cls()
        for option in options:
            config = option(config)
        return config


Option = Callable[[ComparerConfig], ComparerConfig]


# ----------------------------------------------------------------------
# Option functions
# ----------------------------------------------------------------------


def with_max_concurrent_tasks(limit: int) -> Option:
    """Set the admission pool capacity."""
    return lambda c: dataclasses.replace(c, max_concurrent_tasks=limit)


def with_compare_timeout(timeout: float | timedelta) -> Option:
    """Set the per-comparison deadline (seconds or timedelta)."""
    return lambda c: dataclasses.replace(c, compare_timeout=timeout)


def with_max_depth(depth: int) -> Option:
    """Set the maximum nesting depth."""
    return lambda c: dataclasses.replace(c, max_depth=depth)


def with_ignored_fields(*names: str) -> Option:
    """Add member names to the ignore set (existing names are kept)."""
    return lambda c: dataclasses.replace(
        c, ignored_field_names=c.ignored_field_names | frozenset(names)
    )


def with_custom_comparator(name: str, comparator: CustomComparator) -> Option:
    """Register one comparator under ``name``, replacing any previous one."""
    return with_custom_comparators({name: comparator})


def with_custom_comparators(comparators: Mapping[str, CustomComparator]) -> Option:
    """Merge ``comparators`` into the registered comparators."""
    comparators = dict(comparators)

    def _apply(c: ComparerConfig) -> ComparerConfig:
        merged = {**c.custom_comparators, **comparators}
        return dataclasses.replace(c, custom_comparators=merged)

    return _apply


def with_logging(enabled: bool = True, logger: logging.Logger | None = None) -> Option:
    """Toggle debug traces, optionally routing them to ``logger``."""
    return lambda c: dataclasses.replace(
        c, enable_logging=enabled, logger=logger if logger is not None else c.logger
    )


def with_tags(
    ignore_tag: str | None = None,
    custom_tag: str | None = None,
    tag_key: str | None = None,
) -> Option:
    """Change the metadata tokens recognised on members.

    Arguments left as None keep the value already configured.
    """
    return lambda c: dataclasses.replace(
        c,
        ignore_tag=ignore_tag if ignore_tag is not None else c.ignore_tag,
        custom_tag=custom_tag if custom_tag is not None else c.custom_tag,
        tag_key=tag_key if tag_key is not None else c.tag_key,
    )


def with_cache_mode(mode: CacheMode | str) -> Option:
    """Select identity or path keyed visited-pair caching."""
    return lambda c: dataclasses.replace(c, cache_mode=CacheMode(mode))


def with_root_label(label: str) -> Option:
    """Set the path label used for the top-level values."""
    return lambda c: dataclasses.replace(c, root_label=label)
