"""pytest plugin for struct-diff.

Auto-discovered by pytest via the pytest11 entry point declared in pyproject.toml.
When the package is installed (even in editable mode), pytest discovers this plugin
automatically -- no conftest.py changes are needed.

Source: https://docs.pytest.org/en/stable/how-to/writing_plugins.html
"""

from __future__ import annotations

from typing import Any

import pytest

from struct_diff import ComparerConfig, compare


@pytest.fixture(scope="session")
def assert_no_differences() -> Any:
    """Fixture that returns a callable structural equality asserter.

    The fixture is session-scoped because the returned callable is stateless
    (delegates to compare() which creates a fresh StructComparer per call).

    Usage in tests::

        def test_roundtrip(assert_no_differences):
            assert_no_differences(load(dump(person)), person)

        def test_changed_zip(assert_no_differences):
            with pytest.raises(AssertionError, match=r"root.Address.Zip"):
                assert_no_differences(moved_person, person)

    Returns:
        A callable ``_assert(actual, expected, config=None) -> None`` that
        raises ``AssertionError`` when any difference is recorded.
    """

    def _assert(
        actual: Any,
        expected: Any,
        config: ComparerConfig | None = None,
    ) -> None:
        """Assert that two values have no structural difference.

        Args:
            actual:   The value produced by the code under test.
            expected: The reference value.
            config:   Optional ComparerConfig (ignored fields, comparators...).

        Raises:
            AssertionError: When at least one difference is recorded, with a
                message listing every difference sorted by path.
        """
        records = compare(actual, expected, config=config)
        if records:
            lines = "\n".join(
                f"  {r.describe()}" for r in sorted(records, key=lambda r: r.path)
            )
            raise AssertionError(
                f"values differ: {len(records)} difference(s)\n{lines}"
            )

    return _assert
