"""
Tests for wdecustoms.config.loader module.

Tests configuration loading including:
- YAML loading and error handling
- Deep merging over built-in defaults
- Relative path resolution against the config file
- Derived deployment manager path
- Field validation
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from wdecustoms.config import load_config
from wdecustoms.config.loader import _deep_merge_dicts, _load_yaml_file
from wdecustoms.exceptions import ConfigError

REQUIRED = {
    "customisations_folder": "Customisations",
    "wde_installation_folder": "WDE/InteractionWorkspace",
}


class TestYamlLoading:
    """Tests for YAML file loading."""

    def test_load_missing_file_raises(self, tmp_test_dir):
        """Test that a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="file not found"):
            _load_yaml_file(tmp_test_dir / "missing.yaml")

    def test_load_invalid_yaml_raises(self, tmp_test_dir):
        """Test that invalid YAML raises ConfigError."""
        path = tmp_test_dir / "bad.yaml"
        path.write_text("key: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError, match="Error parsing YAML"):
            _load_yaml_file(path)

    def test_load_empty_file_raises(self, tmp_test_dir):
        """Test that an empty file raises ConfigError."""
        path = tmp_test_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConfigError, match="empty"):
            _load_yaml_file(path)

    def test_top_level_must_be_mapping(self, create_yaml_file):
        """Test that a list at the top level is rejected."""
        path = create_yaml_file("config.yaml", ["a", "b"])

        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)


class TestDeepMerge:
    """Tests for the defaults merge."""

    def test_dicts_merge_lists_replace(self):
        """Test that nested dicts merge and lists replace."""
        base = {"log": {"folder": "log", "verbose": "info"}, "redundant_files": ["a"]}
        overlay = {"log": {"verbose": "debug"}, "redundant_files": ["b"]}

        merged = _deep_merge_dicts(base, overlay)

        assert merged == {
            "log": {"folder": "log", "verbose": "debug"},
            "redundant_files": ["b"],
        }
        assert base["log"]["verbose"] == "info"


class TestLoadConfig:
    """Tests for the effective configuration."""

    def test_minimal_config_uses_defaults(self, create_yaml_file, tmp_test_dir):
        """Test that only the two folders are required."""
        config = load_config(create_yaml_file("config.yaml", REQUIRED))
        base = tmp_test_dir.resolve()

        assert config.customisations_folder == base / "Customisations"
        assert config.wde_installation_folder == base / "WDE" / "InteractionWorkspace"
        assert config.redundant_files == ()
        assert config.log.file == base / "log" / "WDECustoms.log"
        assert config.log.level == logging.INFO
        assert config.log.max_bytes == 10 * 1024 * 1024
        assert config.history.keep == 15
        assert config.registry.path == r"Software\Genesys\DeploymentManager"
        assert config.registry.source == "live"
        assert config.registry.keep_snapshots == 5
        assert config.legacy_field_offset is True

    def test_default_deployment_manager_path(self, create_yaml_file, tmp_test_dir):
        """Test the executable path derived from the WDE folder."""
        config = load_config(create_yaml_file("config.yaml", REQUIRED))

        assert config.deployment_manager.path == (
            tmp_test_dir.resolve()
            / "WDE"
            / "InteractionWorkspaceDeploymentManager"
            / "InteractionWorkspaceDeploymentManager.exe"
        )
        assert config.deployment_manager.launch is True
        assert config.deployment_manager.timeout is None

    def test_paths_resolve_against_config_directory(self, create_yaml_file, tmp_test_dir):
        """Test that relative paths follow the config file, not the cwd."""
        path = create_yaml_file(
            "conf/config.yaml", {**REQUIRED, "history": {"folder": "../reports"}}
        )

        config = load_config(path)

        assert config.customisations_folder == tmp_test_dir.resolve() / "conf" / "Customisations"
        assert config.history.folder == tmp_test_dir.resolve() / "reports"

    def test_absolute_paths_are_kept(self, create_yaml_file, tmp_test_dir):
        """Test that absolute paths are used as given."""
        target = tmp_test_dir.resolve() / "elsewhere"
        config = load_config(
            create_yaml_file("config.yaml", {**REQUIRED, "customisations_folder": str(target)})
        )

        assert config.customisations_folder == target

    def test_overrides(self, create_yaml_file):
        """Test that configured values override the defaults."""
        config = load_config(
            create_yaml_file(
                "config.yaml",
                {
                    **REQUIRED,
                    "redundant_files": [".config", "_old"],
                    "log": {"verbose": "debug", "max_size_mb": 1},
                    "registry": {"source": "Snapshot", "keep_snapshots": 15},
                    "deployment_manager": {"launch": False, "timeout": 30},
                    "manifest": {"legacy_field_offset": False},
                },
            )
        )

        assert config.redundant_files == (".config", "_old")
        assert config.log.level == logging.DEBUG
        assert config.log.max_bytes == 1024 * 1024
        assert config.log.max_backups == 5
        assert config.registry.source == "snapshot"
        assert config.registry.keep_snapshots == 15
        assert config.deployment_manager.launch is False
        assert config.deployment_manager.timeout == 30.0
        assert config.legacy_field_offset is False

    def test_unknown_log_level_falls_back_to_error(self, create_yaml_file):
        """Test that an unknown level name means ERROR."""
        config = load_config(
            create_yaml_file("config.yaml", {**REQUIRED, "log": {"verbose": "chatty"}})
        )

        assert config.log.level == logging.ERROR

    @pytest.mark.parametrize("missing", ["customisations_folder", "wde_installation_folder"])
    def test_missing_required_field(self, create_yaml_file, missing):
        """Test that both folders are mandatory."""
        data = {k: v for k, v in REQUIRED.items() if k != missing}

        with pytest.raises(ConfigError, match=missing):
            load_config(create_yaml_file("config.yaml", data))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"registry": {"source": "remote"}},
            {"history": {"keep": 0}},
            {"registry": {"keep_snapshots": "five"}},
            {"deployment_manager": {"timeout": -1}},
            {"redundant_files": ".config"},
            {"log": "debug"},
        ],
    )
    def test_invalid_values(self, create_yaml_file, overrides):
        """Test that invalid field values raise ConfigError."""
        with pytest.raises(ConfigError):
            load_config(create_yaml_file("config.yaml", {**REQUIRED, **overrides}))

    def test_config_path_is_recorded(self, create_yaml_file):
        """Test that the resolved config path is kept on the config."""
        path = create_yaml_file("config.yaml", REQUIRED)

        assert load_config(path).config_path == Path(path).resolve()
