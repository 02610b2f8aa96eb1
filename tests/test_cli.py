"""
Tests for wdecustoms.cli module.

Tests the command-line interface including:
- Argument parsing
- Exit codes for success and failure
- Log file creation
- Flag forwarding to the deploy workflow
"""

from __future__ import annotations

import sys
from unittest.mock import patch

import pytest

from wdecustoms.cli import build_parser, main
from wdecustoms.exceptions import DeployError


@pytest.fixture
def config_file(customisation_tree, make_config):
    customisation_tree(
        {
            "CustomerA/Custom.dll": 1_000,
            "CustomerB/Custom.dll": 2_000,
            "CustomerB/readme.txt": 2_000,
        }
    )
    return make_config().config_path


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


class TestParser:
    """Tests for build_parser."""

    def test_command_required(self):
        """Test that a subcommand must be given."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_deploy_flags(self):
        """Test deploy options and defaults."""
        args = build_parser().parse_args(["deploy", "--no-launch", "--dry-run", "-v"])

        assert args.config == "config.yaml"
        assert args.no_launch is True
        assert args.dry_run is True
        assert args.verbose is True
        assert args.debug is False


class TestScanCommand:
    """Tests for 'wdecustoms scan'."""

    def test_prints_statuses(self, config_file, capsys):
        """Test a successful scan against a real tree."""
        assert _run(["scan", "--config", str(config_file)]) == 0

        out = capsys.readouterr().out
        assert "SCAN RESULTS" in out
        assert "[REDUNDANT]" in out
        assert "To copy:         1" in out
        assert "Skipped:         1" in out

    def test_writes_log_file(self, config_file):
        """Test that the configured log file is created."""
        _run(["scan", "--config", str(config_file)])

        assert (config_file.parent / "log" / "WDECustoms.log").exists()

    def test_missing_config(self, tmp_test_dir, capsys):
        """Test that a missing config file exits with 1."""
        assert _run(["scan", "--config", str(tmp_test_dir / "nope.yaml")]) == 1
        assert "Error:" in capsys.readouterr().out

    def test_empty_customisations_folder(self, tmp_test_dir, make_config, capsys):
        """Test that a root without subfolders exits with 1."""
        (tmp_test_dir / "Customisations").mkdir()
        config = make_config()

        assert _run(["scan", "--config", str(config.config_path)]) == 1
        assert "Error:" in capsys.readouterr().out


class TestDeployCommand:
    """Tests for 'wdecustoms deploy'."""

    def test_forwards_flags(self, config_file, capsys):
        """Test that --no-launch and --dry-run reach the workflow."""
        with patch("wdecustoms.cli.deploy_customisations") as deploy:
            deploy.return_value.copied = ()
            deploy.return_value.launch_exit_code = None
            deploy.return_value.dry_run = True

            assert _run(["deploy", "--config", str(config_file), "--no-launch", "--dry-run"]) == 0

        _, kwargs = deploy.call_args
        assert kwargs == {"launch": False, "dry_run": True}
        assert "[DRY RUN] Done" in capsys.readouterr().out

    def test_failure_exits_with_one(self, config_file, capsys):
        """Test that a workflow error is reported and exits with 1."""
        with patch("wdecustoms.cli.deploy_customisations", side_effect=DeployError("cannot copy x")):
            assert _run(["deploy", "--config", str(config_file)]) == 1

        assert "Error: cannot copy x" in capsys.readouterr().out

    def test_dry_run_from_snapshot(self, customisation_tree, make_config, capsys):
        """Test an end-to-end dry run that needs no registry."""
        customisation_tree({"CustomerA/Custom.dll": 1_000})
        config = make_config(registry={"source": "snapshot"})

        assert _run(["deploy", "--config", str(config.config_path), "--dry-run"]) == 0

        out = capsys.readouterr().out
        assert "Previous state:  none" in out
        assert "Manifest:        new" in out
        assert not config.wde_installation_folder.exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="checks the non-Windows registry guard")
    def test_registry_unavailable(self, config_file, capsys):
        """Test that a deploy without a Windows registry fails cleanly."""
        assert _run(["deploy", "--config", str(config_file), "--no-launch"]) == 1
        assert "Error:" in capsys.readouterr().out
