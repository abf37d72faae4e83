"""CustomComparator Protocol for the per-member comparison extension point.

Any callable taking ``(path, value1, value2)`` and returning a truthy value
when the two values should be considered equal satisfies the protocol;
plain functions, lambdas and objects with ``__call__`` all qualify.

Example::

    from struct_diff.protocols import CustomComparator

    def same_length(path: str, v1: object, v2: object) -> bool:
        return len(v1) == len(v2)

    assert isinstance(same_length, CustomComparator)  # True: structural conformance
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

__all__ = ["CustomComparator"]


@runtime_checkable
class CustomComparator(Protocol):
    """Structural protocol for custom member comparators.

    The callable must:
    - Accept the member path and both member values.
    - Return ``True`` when the values are equivalent.  A falsy return is
      recorded as a ``CustomMismatch`` at ``path``.
    - Not block: it runs inline on the comparison task and is never
      interrupted by the comparison deadline.
    """

    def __call__(self, path: str, value1: Any, value2: Any) -> bool: ...
