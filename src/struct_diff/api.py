"""Public one-shot API functions for struct-diff.

Each call creates a fresh StructComparer to guarantee zero state shared
between calls (no visited-pair cache hits or records carried over).
"""

from __future__ import annotations

from typing import Any

from struct_diff.comparator import StructComparer
from struct_diff.config import ComparerConfig
from struct_diff.result import DifferenceRecord

__all__ = ["compare", "is_equal"]


def compare(
    left: Any,
    right: Any,
    config: ComparerConfig | None = None,
) -> list[DifferenceRecord]:
    """Return every difference between ``left`` and ``right``.

    Args:
        left:   First value.
        right:  Second value.
        config: Comparer options.  Defaults to ``ComparerConfig()`` when None.

    Returns:
        The differences, in no particular order.

    Raises:
        StructDiffError: When the comparison could not complete.
    """
    return StructComparer(config=config).compare(left, right)


def is_equal(
    left: Any,
    right: Any,
    config: ComparerConfig | None = None,
) -> bool:
    """Return True if the comparison of the two values records no difference."""
    return not compare(left, right, config=config)
