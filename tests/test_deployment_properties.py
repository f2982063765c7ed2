"""Tests for packaging metadata."""

import tomllib
from pathlib import Path

from foldersync.utils.config_loader import CONFIG_DIR

REPO_ROOT = Path(__file__).parent.parent


def load_pyproject() -> dict:
    with open(REPO_ROOT / "pyproject.toml", "rb") as f:
        return tomllib.load(f)


def test_runtime_dependencies_declared():
    """Every third-party library the package imports is a declared dependency."""
    dependencies = " ".join(load_pyproject()["project"]["dependencies"])

    for name in ("pydantic", "pydantic-settings", "pyyaml", "structlog"):
        assert name in dependencies, f"{name} missing from pyproject dependencies"


def test_test_extra_declared():
    extras = load_pyproject()["project"]["optional-dependencies"]["test"]

    assert any(dep.startswith("pytest") for dep in extras)
    assert any(dep.startswith("hypothesis") for dep in extras)


def test_console_script_points_at_cli():
    scripts = load_pyproject()["project"]["scripts"]

    assert scripts["foldersync"] == "foldersync.cli:main"


def test_default_config_shipped_as_package_data():
    """The default config lives inside the package so non-editable installs include it."""
    assert (REPO_ROOT / "foldersync" / "config" / "default.yaml").is_file()

    package_data = load_pyproject()["tool"]["setuptools"]["package-data"]["foldersync"]

    assert "config/*.yaml" in package_data
    assert CONFIG_DIR.resolve() == (REPO_ROOT / "foldersync" / "config").resolve()
