"""struct-diff - concurrent, path-addressed structural diffing of Python values."""

from __future__ import annotations

from struct_diff.api import compare, is_equal
from struct_diff.comparator import StructComparer, new_comparer
from struct_diff.comparators import case_insensitive, numeric_tolerance
from struct_diff.config import CacheMode, ComparerConfig
from struct_diff.errors import (
    ComparisonCancelledError,
    ComparisonTimeoutError,
    ConcurrencyExhaustedError,
    DepthExceededError,
    InvalidValueError,
    StructDiffError,
)
from struct_diff.result import DifferenceKind, DifferenceRecord
from struct_diff.shape import MISSING, MemberSpec, register_members

__version__: str = "0.1.0"
__all__: list[str] = [
    "MISSING",
    "CacheMode",
    "ComparerConfig",
    "ComparisonCancelledError",
    "ComparisonTimeoutError",
    "ConcurrencyExhaustedError",
    "DepthExceededError",
    "DifferenceKind",
    "DifferenceRecord",
    "InvalidValueError",
    "MemberSpec",
    "StructComparer",
    "StructDiffError",
    "case_insensitive",
    "compare",
    "is_equal",
    "new_comparer",
    "numeric_tolerance",
    "register_members",
]
