"""Packaging correctness verification for struct-diff.

Tests validate:
- Base install imports cleanly and the one-shot API works
- py.typed marker is present in the wheel
- Pytest plugin entry point is registered
- Package metadata is correct

These tests inspect the built wheel and current installation rather than
creating temporary virtualenvs (faster, more reliable in CI).
"""

from __future__ import annotations

import subprocess
import zipfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent


class TestBaseInstall:
    """Verify the installed package is usable."""

    def test_import_struct_diff(self):  # type: ignore[no-untyped-def]
        """Top-level import succeeds."""
        import struct_diff

        assert hasattr(struct_diff, "compare")
        assert hasattr(struct_diff, "is_equal")
        assert hasattr(struct_diff, "StructComparer")

    def test_compare_basic(self):  # type: ignore[no-untyped-def]
        """compare() works with the default config."""
        from struct_diff import compare

        assert compare({"a": [1, 2]}, {"a": [1, 2]}) == []

    def test_is_equal_basic(self):  # type: ignore[no-untyped-def]
        from struct_diff import is_equal

        assert is_equal({"a": 1}, {"a": 1})


class TestWheelContents:
    """Verify the built wheel contains required files."""

    @pytest.fixture(scope="class")
    def wheel_path(self) -> Path:
        """Build a fresh wheel and return its path."""
        dist_dir = PROJECT_ROOT / "dist"
        try:
            result = subprocess.run(
                ["poetry", "build", "-f", "wheel"],
                cwd=str(PROJECT_ROOT),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            pytest.skip("poetry is not installed")
        if result.returncode != 0:
            pytest.skip(f"poetry build failed: {result.stderr}")

        wheels = sorted(dist_dir.glob("*.whl"), key=lambda p: p.stat().st_mtime)
        if not wheels:
            pytest.skip("No wheel found in dist/")
        return wheels[-1]

    @pytest.mark.slow
    def test_py_typed_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """py.typed marker must be included in the wheel."""
        with zipfile.ZipFile(wheel_path) as zf:
            names = zf.namelist()
            assert any(n.endswith("py.typed") for n in names), (
                f"py.typed not found in wheel. Contents: {names}"
            )

    @pytest.mark.slow
    def test_all_source_modules_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """All source modules must be present in the wheel."""
        expected_modules = [
            "struct_diff/__init__.py",
            "struct_diff/api.py",
            "struct_diff/cache.py",
            "struct_diff/comparator.py",
            "struct_diff/comparators.py",
            "struct_diff/concurrency.py",
            "struct_diff/config.py",
            "struct_diff/errors.py",
            "struct_diff/protocols.py",
            "struct_diff/result.py",
            "struct_diff/sink.py",
            "struct_diff/shape/__init__.py",
            "struct_diff/shape/classifier.py",
            "struct_diff/shape/kinds.py",
            "struct_diff/shape/metadata.py",
            "struct_diff/integrations/__init__.py",
            "struct_diff/integrations/_pytest_plugin.py",
        ]
        with zipfile.ZipFile(wheel_path) as zf:
            names = zf.namelist()
            for module in expected_modules:
                assert any(module in n for n in names), (
                    f"Module {module} not found in wheel"
                )

    @pytest.mark.slow
    def test_metadata_in_wheel(self, wheel_path: Path):  # type: ignore[no-untyped-def]
        """Wheel metadata must include correct package info."""
        with zipfile.ZipFile(wheel_path) as zf:
            metadata_files = [n for n in zf.namelist() if n.endswith("METADATA")]
            assert metadata_files, "No METADATA found in wheel"
            metadata = zf.read(metadata_files[0]).decode()
            assert "struct-diff" in metadata.lower() or "struct_diff" in metadata.lower()
            assert "0.1.0" in metadata


class TestPytestPluginDiscovery:
    """Verify the pytest plugin is discoverable."""

    def test_entry_point_registered(self):  # type: ignore[no-untyped-def]
        """pytest11 entry point must be registered for struct-diff."""
        from importlib.metadata import entry_points

        pytest11_eps = entry_points(group="pytest11")
        sd_eps = [ep for ep in pytest11_eps if "struct_diff" in str(ep.value)]
        assert sd_eps, (
            f"No pytest11 entry point found for struct-diff. "
            f"Available: {[ep.name for ep in pytest11_eps]}"
        )

    def test_fixture_available(self):  # type: ignore[no-untyped-def]
        """assert_no_differences fixture must be importable from plugin."""
        import importlib

        mod = importlib.import_module("struct_diff.integrations._pytest_plugin")
        assert hasattr(mod, "assert_no_differences")
        assert callable(mod.assert_no_differences)


class TestPackageMetadata:
    """Verify pyproject.toml metadata completeness."""

    def test_version(self):  # type: ignore[no-untyped-def]
        """Package version must be 0.1.0."""
        import struct_diff

        assert struct_diff.__version__ == "0.1.0"

    def test_installed_version_matches(self):  # type: ignore[no-untyped-def]
        from importlib.metadata import version

        import struct_diff

        assert version("struct-diff") == struct_diff.__version__

    def test_all_exports(self):  # type: ignore[no-untyped-def]
        """__all__ must include the documented public API."""
        import struct_diff

        expected = {
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
        }
        actual = set(struct_diff.__all__)
        assert expected == actual, (
            f"Missing: {expected - actual}, Extra: {actual - expected}"
        )
