"""Shape StrEnum, Member descriptor and the MISSING sentinel.

Provides the foundational data types used by the classifier to describe a
runtime value as one of three shapes the traversal engine dispatches on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any, Final

__all__ = ["MISSING", "Member", "Shape"]


class Shape(StrEnum):
    """The three shapes a compared value can take.

    - COMPOSITE -> "composite" : named members (dataclass, namedtuple,
      mapping, registered class)
    - SEQUENCE  -> "sequence"  : ordered, indexable, length-bearing
      collection compared positionally (list, tuple, ...)
    - SCALAR    -> "scalar"    : anything else, compared by deep equality
    """

    COMPOSITE = auto()
    SEQUENCE = auto()
    SCALAR = auto()


class _Missing:
    """Marks an operand that is absent, e.g. a mapping key on one side only."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


@dataclass(frozen=True, slots=True)
class Member:
    """One named member of a composite type.

    Attributes:
        name:       Member name used for config lookups (``ignored_field_names``,
                    comparators bound by name).
        ignored:    Member metadata says "never compare this member".
        comparator: Name of the custom comparator selected by member metadata,
                    or None.
    """

    name: Any
    ignored: bool = False
    comparator: str | None = None
