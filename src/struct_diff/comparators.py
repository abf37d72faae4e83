"""Ready-made custom comparators.

Register them under any name via ``ComparerConfig(custom_comparators=...)``
and reference that name from member metadata
(``field(metadata={"comparer": "custom=case_insensitive"})``) or bind them
directly to a member name.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from struct_diff.protocols import CustomComparator

__all__ = ["case_insensitive", "numeric_tolerance"]


def case_insensitive(path: str, value1: Any, value2: Any) -> bool:
    """Return True if both values are strings equal under case folding.

    Non-string operands never match.
    """
    if not isinstance(value1, str) or not isinstance(value2, str):
        return False
    return value1.casefold() == value2.casefold()


def numeric_tolerance(
    rel_tol: float = 1e-9,
    abs_tol: float = 0.0,
) -> CustomComparator:
    """Build a comparator accepting numbers (or arrays) within a tolerance.

    Uses ``numpy.isclose`` element-wise, so scalars, lists of numbers and
    NumPy arrays of matching shape are all accepted.  Booleans, strings and
    shape-incompatible operands never match.

    Args:
        rel_tol: Relative tolerance (``rtol`` of ``numpy.isclose``).
        abs_tol: Absolute tolerance (``atol`` of ``numpy.isclose``).

    Returns:
        A comparator suitable for ``custom_comparators``.

    Raises:
        ValueError: If either tolerance is negative.
    """
    if rel_tol < 0.0 or abs_tol < 0.0:
        msg = f"tolerances must be >= 0.0, got rel_tol={rel_tol}, abs_tol={abs_tol}"
        raise ValueError(msg)

    def _compare(path: str, value1: Any, value2: Any) -> bool:
        if isinstance(value1, (bool, str)) or isinstance(value2, (bool, str)):
            return False
        try:
            a = np.asarray(value1, dtype=float)
            b = np.asarray(value2, dtype=float)
        except (TypeError, ValueError):
            return False
        if a.shape != b.shape:
            return False
        return bool(np.all(np.isclose(a, b, rtol=rel_tol, atol=abs_tol)))

    return _compare
