"""Exception hierarchy for struct-diff.

Every failure raised by the comparison engine derives from
``StructDiffError`` and carries the path at which it was triggered.  The
top-level ``compare()`` call additionally attaches a snapshot of the records
collected before the failure as ``.results``: a raised error means the
comparison is incomplete, but the attached records are still valid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from struct_diff.result import DifferenceRecord

__all__ = [
    "ComparisonCancelledError",
    "ComparisonTimeoutError",
    "ConcurrencyExhaustedError",
    "DepthExceededError",
    "InvalidValueError",
    "StructDiffError",
]


class StructDiffError(Exception):
    """Base class for all comparison failures.

    Attributes:
        path: Path of the location whose comparison failed.
        results: Records collected before the failure.  Empty until the
            top-level comparer attaches its snapshot.
    """

    reason = "comparison failed"

    def __init__(self, path: str, reason: str | None = None) -> None:
        self.path = path
        self.results: list[DifferenceRecord] = []
        super().__init__(f"{reason or self.reason} at path {path}")


class InvalidValueError(StructDiffError):
    """One of the two operands is absent at ``path``."""

    reason = "invalid value"


class DepthExceededError(StructDiffError):
    """Nesting went deeper than ``max_depth``."""

    reason = "maximum recursion depth exceeded"


class ConcurrencyExhaustedError(StructDiffError):
    """No admission token was free when the task tried to start."""

    reason = "max concurrent operations reached"


class ComparisonCancelledError(StructDiffError):
    """The caller's cancel event was set before the task started."""

    reason = "comparison cancelled"


class ComparisonTimeoutError(ComparisonCancelledError, TimeoutError):
    """The comparison deadline elapsed."""

    reason = "comparison deadline exceeded"
