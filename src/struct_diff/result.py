"""DifferenceRecord dataclass and DifferenceKind enum.

A ``DifferenceRecord`` is created exactly once by the traversal engine for
every confirmed mismatch and is never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

__all__ = ["DifferenceKind", "DifferenceRecord"]


class DifferenceKind(StrEnum):
    """Kind of difference found at a path.

    - TYPE_MISMATCH:   the two operands have different runtime types.
    - LENGTH_MISMATCH: two ordered sequences have different lengths.
    - VALUE_MISMATCH:  two scalars are not deeply equal.
    - CUSTOM_MISMATCH: a custom comparator rejected the pair.
    """

    TYPE_MISMATCH = "TypeMismatch"
    LENGTH_MISMATCH = "LengthMismatch"
    VALUE_MISMATCH = "ValueMismatch"
    CUSTOM_MISMATCH = "CustomMismatch"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class DifferenceRecord:
    """One difference between the two compared values.

    Attributes:
        path: Dot/bracket address of the location, e.g. ``root.Address.Zip``
            or ``root.Hobbies[1]``.
        kind: What kind of difference this is.
        value1: The left operand (the left length for LENGTH_MISMATCH).
            Captured as-is, never copied.
        value2: The right operand (the right length for LENGTH_MISMATCH).
        value_type: Runtime type of the left operand at this location.
        timestamp: UTC time at which the difference was recorded.
    """

    path: str
    kind: DifferenceKind
    value1: Any
    value2: Any
    value_type: type
    timestamp: datetime = field(default_factory=_now)

    def describe(self) -> str:
        """Return a one-line, human readable description of the difference."""
        return (
            f"Difference at {self.path} "
            f"({self.kind}, Type: {self.value_type.__qualname__}): "
            f"{self.value1!r} != {self.value2!r}"
        )
