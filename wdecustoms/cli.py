# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for wdecustoms.

Commands:

    scan: Preview which customisation files would be deployed
    deploy: Copy files, update the CustomFiles manifest and launch the
        deployment manager

Example:
    Preview the resolution:
        ```bash
        $ wdecustoms scan --config D:\\WDECustoms\\config.yaml
        ```

    Deploy without starting the deployment manager:
        ```bash
        $ wdecustoms deploy --no-launch --verbose
        ```

    Show what a deploy would do, writing nothing:
        ```bash
        $ wdecustoms deploy --dry-run --debug
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, scan, manifest, registry or deploy failure)

Note:
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode. Every message is also written to the
    rotating log file configured under ``log``.

"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys

from wdecustoms.config import DEFAULT_CONFIG_FILE, AppConfig, load_config
from wdecustoms.core import deploy_customisations, scan_customisations
from wdecustoms.exceptions import ConfigError, WDECustomsError
from wdecustoms.logging import FileLogger, get_logger, set_global_logger
from wdecustoms.results import ScanResult


def _print_error(err: Exception, args: argparse.Namespace) -> None:
    print(f"Error: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()


def _open_file_logger(config: AppConfig, args: argparse.Namespace) -> FileLogger:
    console = get_logger(verbose=args.verbose, debug=args.debug)
    file_logger = FileLogger(
        config.log.file,
        console,
        level=config.log.level,
        max_bytes=config.log.max_bytes,
        backup_count=config.log.max_backups,
    )
    set_global_logger(file_logger)
    return file_logger


def _print_statuses(result: ScanResult, config: AppConfig) -> None:
    for file, status in zip(result.scanned, result.statuses):
        source = file.source_path
        try:
            shown = source.relative_to(config.customisations_folder) if source else file.file_name
        except ValueError:
            shown = source
        print(f"{status.label} {shown}")


def cmd_scan(args: argparse.Namespace) -> int:
    """Handler for 'wdecustoms scan' command.

    Scans and resolves the customisation folders and prints the status of
    every file. Nothing is copied and the registry is not touched.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        config = load_config(Path(args.config))
        file_logger = _open_file_logger(config, args)
    except (ConfigError, OSError) as err:
        _print_error(err, args)
        return 1

    print(f"Customisations folder: {config.customisations_folder}")
    print()

    try:
        result = scan_customisations(config)
    except WDECustomsError as err:
        _print_error(err, args)
        return 1
    finally:
        file_logger.close()

    _print_statuses(result, config)
    print()
    print("=" * 70)
    print("SCAN RESULTS")
    print("=" * 70)
    print(f"Folders:         {len(result.folders)}")
    print(f"Files scanned:   {len(result.scanned)}")
    print(f"To copy:         {result.copied_count}")
    print(f"Skipped:         {result.skipped_count}")
    print(f"Redundant:       {result.redundant_count}")
    print("=" * 70)

    return 0


def cmd_deploy(args: argparse.Namespace) -> int:
    """Handler for 'wdecustoms deploy' command.

    Runs the full workflow: copy the resolved files into the WDE
    installation folder, merge and write the CustomFiles manifest, launch
    the deployment manager and write the history report.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).

    Note:
        A failure before the registry write leaves the registry untouched.
        Files copied before a failure stay in the installation folder.

    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        config = load_config(Path(args.config))
        file_logger = _open_file_logger(config, args)
    except (ConfigError, OSError) as err:
        _print_error(err, args)
        return 1

    print(f"Deploying customisations from: {config.customisations_folder}")
    print(f"WDE installation folder: {config.wde_installation_folder}")
    if args.dry_run:
        print("Dry run: nothing will be written")
    print()

    try:
        result = deploy_customisations(
            config,
            launch=not args.no_launch,
            dry_run=args.dry_run,
        )
    except WDECustomsError as err:
        _print_error(err, args)
        return 1
    finally:
        file_logger.close()

    print()
    print("=" * 70)
    print("DEPLOY RESULTS")
    print("=" * 70)
    print(f"Files copied:    {len(result.copied)}")
    print(f"Skipped:         {result.scan.skipped_count}")
    print(f"Redundant:       {result.scan.redundant_count}")
    print(f"Previous state:  {result.previous_source}")
    print(f"Manifest:        {'new' if result.fresh_manifest else 'merged'}")
    print(f"History:         {result.history_file or '-'}")
    if result.launch_exit_code is not None:
        print(f"DM exit code:    {result.launch_exit_code}")
    print("=" * 70)
    print()
    print("[SUCCESS] Customisations deployed" if not result.dry_run else "[DRY RUN] Done")

    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to the configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wdecustoms",
        description="WDE Customs - deploy Workspace Desktop Edition customisations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"wdecustoms {version('wdecustoms')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'scan' command
    parser_scan = subparsers.add_parser(
        "scan",
        help="Preview which customisation files would be deployed",
        description="Scan the customisation folders and print the status of every file without writing anything.",
    )
    _add_common_arguments(parser_scan)
    parser_scan.set_defaults(func=cmd_scan)

    # 'deploy' command
    parser_deploy = subparsers.add_parser(
        "deploy",
        help="Copy files, update the CustomFiles manifest and launch the deployment manager",
        description="Deploy the resolved customisation files and merge them into the deployment manager configuration.",
    )
    _add_common_arguments(parser_deploy)
    parser_deploy.add_argument(
        "--no-launch",
        action="store_true",
        help="Do not start the deployment manager after the registry write",
    )
    parser_deploy.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and merge, but copy nothing and write nothing",
    )
    parser_deploy.set_defaults(func=cmd_deploy)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the wdecustoms CLI.

    This function is registered as the 'wdecustoms' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
