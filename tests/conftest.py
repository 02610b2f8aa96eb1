"""
Pytest configuration and shared fixtures for wdecustoms tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from wdecustoms.config import AppConfig, load_config
from wdecustoms.logging import SilentLogger, set_global_logger
from wdecustoms.models import FileVersion


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger so tests never leak configured loggers."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def customisation_tree(tmp_test_dir: Path):
    """
    Factory fixture for building a customisations root.

    Usage:
        root = customisation_tree({
            "CustomerA/Custom.dll": 100,           # mtime (epoch seconds)
            "CustomerB/Languages/en-US.xml": 200,
        })

    Values are modification times; content is derived from the path.
    """

    def _create(files: dict[str, float], root_name: str = "Customisations") -> Path:
        root = tmp_test_dir / root_name
        root.mkdir(parents=True, exist_ok=True)
        for relative, mtime in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"content of {relative}", encoding="utf-8")
            os.utime(path, (mtime, mtime))
        return root

    return _create


@pytest.fixture
def version_probe():
    """
    Factory fixture for a deterministic version probe.

    Usage:
        probe = version_probe({"CustomerB/Custom.dll": "2.0.0.0"})

    Keys are path suffixes (forward slashes); unknown files get version 0.
    """

    def _create(versions: dict[str, str] | None = None) -> Callable[[Path], FileVersion]:
        table = {k: FileVersion.parse(v) for k, v in (versions or {}).items()}

        def probe(path: Path) -> FileVersion:
            posix = Path(path).as_posix()
            for suffix, version in table.items():
                if posix.endswith(suffix):
                    return version
            return FileVersion()

        return probe

    return _create


@pytest.fixture
def make_config(tmp_test_dir: Path, create_yaml_file):
    """
    Factory fixture writing a config.yaml and loading it.

    Usage:
        config = make_config(customisations_folder=str(root), redundant_files=[".xml"])

    Defaults point the WDE installation folder at ``<tmp>/WDE/InteractionWorkspace``
    and keep every run-time folder inside the temporary directory.
    """

    def _create(**overrides: Any) -> AppConfig:
        data: dict[str, Any] = {
            "customisations_folder": str(tmp_test_dir / "Customisations"),
            "wde_installation_folder": str(tmp_test_dir / "WDE" / "InteractionWorkspace"),
            "deployment_manager": {"launch": False},
        }
        data.update(overrides)
        return load_config(create_yaml_file("config.yaml", data))

    return _create
