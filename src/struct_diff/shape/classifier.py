"""Shape classification and member enumeration for compared values.

Dispatch order matters:
- registered types are composites, whatever they inherit from;
- NumPy arrays are scalars (compared with ``numpy.array_equal``);
- str, bytes and bytearray are sequences in Python but compare as scalars;
- namedtuples must be checked before the generic Sequence test because they
  are tuples.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from struct_diff.shape.kinds import MISSING, Member, Shape
from struct_diff.shape.metadata import MemberRegistry, TagSyntax, default_registry

__all__ = ["classify", "member_value", "members_of"]

_ATOMIC_SEQUENCES = (str, bytes, bytearray, memoryview)


def _is_namedtuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def classify(value: Any, registry: MemberRegistry = default_registry) -> Shape:
    """Return the shape of ``value``."""
    if registry.is_registered(type(value)):
        return Shape.COMPOSITE
    if isinstance(value, (np.ndarray, *_ATOMIC_SEQUENCES)):
        return Shape.SCALAR
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return Shape.COMPOSITE
    if _is_namedtuple(value) or isinstance(value, Mapping):
        return Shape.COMPOSITE
    if isinstance(value, Sequence):
        return Shape.SEQUENCE
    return Shape.SCALAR


def _names(value: Any, registry: MemberRegistry) -> list[Any]:
    registered = registry.registered_names(type(value))
    if registered is not None:
        return list(registered)
    if isinstance(value, Mapping):
        return list(value.keys())
    if dataclasses.is_dataclass(value):
        return [f.name for f in dataclasses.fields(value)]
    if _is_namedtuple(value):
        return list(type(value)._fields)
    return list(vars(value))


def members_of(
    value1: Any,
    value2: Any,
    syntax: TagSyntax,
    registry: MemberRegistry = default_registry,
) -> list[Member]:
    """List the members of two composites of the same type.

    Member order is the left value's declaration (or insertion) order,
    followed by names only the right value has.  Each member carries the
    metadata registered for the type.
    """
    names = _names(value1, registry)
    seen = set(names)
    names.extend(n for n in _names(value2, registry) if n not in seen)

    described = registry.describe(type(value1), syntax)
    return [described.get(name) or Member(name) for name in names]


def member_value(value: Any, name: Any) -> Any:
    """Return member ``name`` of ``value``, or MISSING when it has none."""
    if isinstance(value, Mapping):
        return value.get(name, MISSING)
    if isinstance(name, str):
        return getattr(value, name, MISSING)
    return MISSING
