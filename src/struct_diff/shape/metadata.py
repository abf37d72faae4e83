"""Member metadata: tag parsing and the per-type side table.

Members of a composite type can carry two annotations: "ignore this member"
and "use the custom comparator named X".  They are read from two places:

- dataclass field metadata, under the config's ``tag_key``::

      @dataclass
      class Person:
          name: str = field(metadata={"comparer": "custom=case_insensitive"})
          age: int = field(metadata={"comparer": "ignore"})

  The value is a comma-separated token string (``"ignore,custom=x"``) or a
  ``MemberSpec``.

- an explicit side table filled with ``register_members()``.  Entries in the
  side table override field metadata.  Registering a type that is neither a
  dataclass, a namedtuple nor a mapping also makes its instances composites.

The merged descriptor of a type is derived once per (type, tag syntax) and
memoised in an LRU cache; registering a type again invalidates the cache.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from cachetools import LRUCache

from struct_diff.shape.kinds import Member

__all__ = [
    "MemberRegistry",
    "MemberSpec",
    "TagSyntax",
    "default_registry",
    "parse_tag",
    "register_members",
]


@dataclass(frozen=True, slots=True)
class MemberSpec:
    """Metadata for one member in the side table.

    Attributes:
        ignored:    Never compare this member.
        comparator: Name of a custom comparator to apply instead of
                    structural comparison.
    """

    ignored: bool = False
    comparator: str | None = None


@dataclass(frozen=True, slots=True)
class TagSyntax:
    """Where and how member metadata is spelled (taken from ComparerConfig)."""

    tag_key: str = "comparer"
    ignore_tag: str = "ignore"
    custom_tag: str = "custom"


@dataclass(frozen=True, slots=True)
class _Registration:
    specs: Mapping[str, MemberSpec]
    names: tuple[str, ...] | None


def parse_tag(tag: Any, syntax: TagSyntax) -> MemberSpec:
    """Interpret one metadata value.

    Args:
        tag: A ``MemberSpec`` (returned unchanged) or a comma-separated token
            string such as ``"ignore"`` or ``"custom=case_insensitive"``.
        syntax: Token names to recognise.

    Returns:
        The parsed spec.  Unknown tokens are ignored.
    """
    if isinstance(tag, MemberSpec):
        return tag
    if not isinstance(tag, str):
        return MemberSpec()

    ignored = False
    comparator: str | None = None
    prefix = f"{syntax.custom_tag}="
    for raw in tag.split(","):
        token = raw.strip()
        if token == syntax.ignore_tag:
            ignored = True
        elif token.startswith(prefix) and len(token) > len(prefix):
            comparator = token[len(prefix) :].strip()
    return MemberSpec(ignored=ignored, comparator=comparator)


class MemberRegistry:
    """Thread-safe side table of member metadata, keyed by type.

    Args:
        max_cache_size: Maximum number of derived (type, tag syntax)
            descriptors kept in the LRU cache.
    """

    def __init__(self, max_cache_size: int = 256) -> None:
        self._lock = threading.RLock()
        self._registrations: dict[type, _Registration] = {}
        self._descriptors: LRUCache[tuple[type, TagSyntax], Mapping[Any, Member]] = (
            LRUCache(maxsize=max_cache_size)
        )

    def register(
        self,
        cls: type,
        specs: Mapping[str, MemberSpec] | None = None,
        *,
        names: Sequence[str] | None = None,
    ) -> None:
        """Register member metadata (and optionally member names) for ``cls``.

        Args:
            cls: The composite type.
            specs: Metadata by member name.
            names: Member names, in comparison order, for types whose members
                cannot be discovered (plain classes).  When omitted, plain
                classes use the instance's ``vars()`` keys.

        Raises:
            TypeError: If ``cls`` is not a class or a spec has the wrong type.
        """
        if not isinstance(cls, type):
            msg = f"register() expects a class, got {cls!r}"
            raise TypeError(msg)
        copied = dict(specs or {})
        for name, spec in copied.items():
            if not isinstance(spec, MemberSpec):
                msg = f"spec for member {name!r} must be a MemberSpec, got {spec!r}"
                raise TypeError(msg)
        with self._lock:
            self._registrations[cls] = _Registration(
                specs=MappingProxyType(copied),
                names=tuple(names) if names is not None else None,
            )
            self._descriptors.clear()

    def unregister(self, cls: type) -> None:
        """Forget ``cls``; unknown types are ignored."""
        with self._lock:
            self._registrations.pop(cls, None)
            self._descriptors.clear()

    def is_registered(self, cls: type) -> bool:
        with self._lock:
            return cls in self._registrations

    def registered_names(self, cls: type) -> tuple[str, ...] | None:
        """Member names given at registration time, if any."""
        with self._lock:
            registration = self._registrations.get(cls)
        return registration.names if registration is not None else None

    def describe(self, cls: type, syntax: TagSyntax) -> Mapping[Any, Member]:
        """Return the merged metadata of ``cls`` by member name.

        Members without any metadata are absent from the returned mapping.
        """
        key = (cls, syntax)
        with self._lock:
            if key in self._descriptors:
                return self._descriptors[key]
            described = self._build(cls, syntax)
            self._descriptors[key] = described
            return described

    @property
    def curr_size(self) -> int:
        """Number of cached descriptors."""
        return int(self._descriptors.currsize)

    def _build(self, cls: type, syntax: TagSyntax) -> Mapping[Any, Member]:
        members: dict[Any, Member] = {}
        if dataclasses.is_dataclass(cls):
            for f in dataclasses.fields(cls):
                if syntax.tag_key not in f.metadata:
                    continue
                spec = parse_tag(f.metadata[syntax.tag_key], syntax)
                members[f.name] = Member(f.name, spec.ignored, spec.comparator)

        registration = self._registrations.get(cls)
        if registration is not None:
            for name, spec in registration.specs.items():
                members[name] = Member(name, spec.ignored, spec.comparator)
        return MappingProxyType(members)


default_registry = MemberRegistry()


def register_members(
    cls: type,
    specs: Mapping[str, MemberSpec] | None = None,
    *,
    names: Sequence[str] | None = None,
) -> type:
    """Register ``cls`` in the default registry and return it.

    Returning the class allows use as a plain call or, with no specs, as a
    class decorator::

        @register_members
        class Point:
            def __init__(self, x, y):
                self.x, self.y = x, y
    """
    default_registry.register(cls, specs, names=names)
    return cls
