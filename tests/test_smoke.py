"""Tests for factorflow package import and basic smoke tests."""

import importlib
import subprocess
import sys

import pytest


class TestImport:
    """Test that factorflow can be imported."""

    def test_import_factorflow(self) -> None:
        """Test importing the factorflow package."""
        import factorflow

        assert hasattr(factorflow, "__version__")

    def test_version_exists(self) -> None:
        """Test that __version__ is defined."""
        import factorflow

        assert isinstance(factorflow.__version__, str)
        assert len(factorflow.__version__) > 0

    def test_reimport(self) -> None:
        """Test that factorflow can be reimported."""
        import factorflow

        importlib.reload(factorflow)
        assert factorflow.__version__

    def test_families_registered_on_import(self) -> None:
        """Importing the package registers every operator family."""
        import factorflow
        from factorflow.inference import registered_families

        assert len(registered_families()) == 7
        assert factorflow.get_family(factorflow.NodeKind.VARIABLE, factorflow.Algorithm.EP)


class TestCLISmoke:
    """Interpreter smoke tests for the factorflow package."""

    @pytest.mark.skipif(
        subprocess.run(
            [sys.executable, "-m", "pip", "show", "factorflow"],
            capture_output=True,
        ).returncode != 0,
        reason="factorflow not installed via pip (run 'pip install -e .')",
    )
    def test_pip_show(self) -> None:
        """Test that pip show factorflow succeeds."""
        result = subprocess.run(
            [sys.executable, "-m", "pip", "show", "factorflow"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "factorflow" in result.stdout.lower()

    def test_python_c_version(self) -> None:
        """Test that version string is valid semver-like."""
        result = subprocess.run(
            [sys.executable, "-c", "import factorflow; print(factorflow.__version__)"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        version = result.stdout.strip()
        parts = version.split(".")
        assert len(parts) >= 3, f"Version {version!r} is not semver-like"
