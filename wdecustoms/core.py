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

"""Core orchestration for wdecustoms.

This module provides the two high-level workflows behind the CLI.

scan_customisations:
    Read-only preview. Scans the customisation folders, applies the
    redundancy rules and resolves duplicates. Nothing is written.

deploy_customisations:
    The full unattended run:

    1. Scan and resolve (as above).
    2. Start the history report on a background thread.
    3. Copy the winners into the WDE installation folder.
    4. Read the previous registry entries, from the live key or from the
       newest snapshot, and back them up as a snapshot.
    5. Merge the new file list with the previous CustomFiles manifest so
       operator-edited attributes survive.
    6. Write the registry and snapshot what was written.
    7. Launch the deployment manager.
    8. Wait for the history report and prune old snapshots.

Any failure on the main path (steps 1-7) aborts the run. Files are copied
before the registry is touched, so a copy failure never leaves a manifest
pointing at files that are not there. The history report never aborts the
run; it is still awaited when the run fails so its output is not lost.

Design Principles:

- Functions return frozen dataclasses (see results.py)
- Side effects go through RegistryStore and FileOperations so the whole
  workflow runs in tests against in-memory backends
- Error handling uses exceptions; the CLI layer formats them for display

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from wdecustoms.config import load_config
        from wdecustoms.core import deploy_customisations
        from wdecustoms.io import RecordingFileOperations
        from wdecustoms.registry import MemoryRegistryStore

        config = load_config(Path("config.yaml"))
        result = deploy_customisations(
            config,
            registry=MemoryRegistryStore(),
            file_ops=RecordingFileOperations(),
            launch=False,
        )
        print(result.manifest)
        ```
"""

from __future__ import annotations

import dataclasses
from datetime import datetime

from wdecustoms.config.loader import AppConfig
from wdecustoms.exceptions import ManifestKeyNotFoundError
from wdecustoms.history import HistoryWriter, history_file_path
from wdecustoms.io.files import (
    FileOperations,
    LocalFileOperations,
    RecordingFileOperations,
    copy_customisation_files,
)
from wdecustoms.launcher import launch_deployment_manager
from wdecustoms.logging import get_global_logger
from wdecustoms.manifest.merger import build_fresh_manifest, merge_manifest
from wdecustoms.models import CUSTOM_FILES, RegistryEntries
from wdecustoms.registry.snapshots import (
    find_latest_snapshot,
    load_snapshot,
    prune_files,
    save_snapshot,
    snapshot_pattern,
)
from wdecustoms.registry.store import RegistryStore, default_registry_store
from wdecustoms.resolution.redundancy import compile_redundancy_rules
from wdecustoms.resolution.resolver import resolve_duplicates
from wdecustoms.results import DeployResult, ScanResult
from wdecustoms.scanning import scanner
from wdecustoms.scanning.scanner import VersionProbe
from wdecustoms.scanning.version import probe_file_version

SOURCE_REGISTRY = "registry"
SOURCE_SNAPSHOT = "snapshot"
SOURCE_NONE = "none"

_DEPLOY_STEPS = 7


def _scan_and_resolve(
    config: AppConfig, probe: VersionProbe, step: int, total: int
) -> ScanResult:
    logger = get_global_logger()

    logger.step(step, total, "Scanning customisation folders...")
    folders, scanned = scanner.scan_customisations(config.customisations_folder, probe)
    logger.verbose(
        "SCAN", f"{len(folders)} folder(s), {len(scanned)} file(s) collected"
    )

    logger.step(step + 1, total, "Resolving duplicates...")
    rules = compile_redundancy_rules(config.redundant_files)
    resolved = resolve_duplicates(scanned, rules)

    return ScanResult(
        folders=tuple(folders),
        scanned=tuple(scanned),
        statuses=tuple(resolved.statuses),
        files=tuple(resolved.files),
    )


def scan_customisations(
    config: AppConfig, *, probe: VersionProbe = probe_file_version
) -> ScanResult:
    """Scan and resolve the customisation folders without writing anything.

    Args:
        config: Effective configuration.
        probe: Version probe (overridable for tests).

    Returns:
        ScanResult with every scanned file, its status and the winners.

    Raises:
        NoSubdirectoriesError: If the customisations folder has no subfolders.
        ScanError: If a folder cannot be read.
        ConfigError: If a redundancy pattern is not a valid regex.
    """
    return _scan_and_resolve(config, probe, 1, 2)


def read_previous_entries(
    config: AppConfig, registry: RegistryStore | None
) -> tuple[RegistryEntries, str]:
    """Load the registry entries the new manifest is merged into.

    The live key is used unless ``registry.source`` is "snapshot" or the
    live key holds no values; then the newest snapshot is used.

    Returns:
        Tuple of (entries, source) where source is "registry", "snapshot"
        or "none" (no previous state at all).

    Raises:
        RegistryError: If the live key cannot be read.
        SnapshotError: If the newest snapshot cannot be loaded.
    """
    logger = get_global_logger()

    if config.registry.source == "live" and registry is not None:
        entries = registry.read_entries(config.registry.path)
        if len(entries):
            return entries, SOURCE_REGISTRY
        logger.verbose("REGISTRY", "Live key is empty, looking for a snapshot")

    latest = find_latest_snapshot(
        config.registry.snapshot_folder, config.registry.snapshot_prefix
    )
    if latest is None:
        logger.verbose("REGISTRY", "No previous registry state found")
        return RegistryEntries(), SOURCE_NONE

    logger.verbose("REGISTRY", f"Using snapshot {latest.name}")
    return load_snapshot(latest), SOURCE_SNAPSHOT


def deploy_customisations(
    config: AppConfig,
    *,
    registry: RegistryStore | None = None,
    file_ops: FileOperations | None = None,
    launch: bool = True,
    dry_run: bool = False,
    probe: VersionProbe = probe_file_version,
) -> DeployResult:
    """Run the full deploy workflow.

    Args:
        config: Effective configuration.
        registry: Registry backend. Default is the Windows registry.
        file_ops: File operations backend. Default is the local file system
            (a recorder in dry-run mode).
        launch: Launch the deployment manager at the end (also requires
            ``deployment_manager.launch`` in the config).
        dry_run: Compute everything but write nothing: no copies, no
            registry write, no snapshots, no history, no launch.
        probe: Version probe (overridable for tests).

    Returns:
        DeployResult describing what was done.

    Raises:
        WDECustomsError: Any failure on the main path aborts the run.
    """
    logger = get_global_logger()
    started = datetime.now()
    total = _DEPLOY_STEPS

    if file_ops is None:
        file_ops = RecordingFileOperations() if dry_run else LocalFileOperations()
    if registry is None and (not dry_run or config.registry.source == "live"):
        registry = default_registry_store()

    scan = _scan_and_resolve(config, probe, 1, total)

    history: HistoryWriter | None = None
    if not dry_run:
        history = HistoryWriter(
            history_file_path(config.history.folder, config.history.prefix, started),
            scan.folders,
            scan.scanned,
            scan.statuses,
            config.customisations_folder,
            prefix=config.history.prefix,
            keep=config.history.keep,
            file_ops=file_ops,
        )
        history.start()

    snapshots = []
    exit_code = None
    try:
        logger.step(3, total, "Copying customisation files...")
        if dry_run:
            logger.verbose("COPY", f"Dry run: {len(scan.files)} file(s) would be copied")
            copied = []
        else:
            copied = copy_customisation_files(
                scan.files, config.wde_installation_folder, file_ops
            )

        logger.step(4, total, "Reading previous registry entries...")
        previous, source = read_previous_entries(config, registry)
        if source == SOURCE_REGISTRY and not dry_run:
            snapshots.append(
                save_snapshot(
                    config.registry.snapshot_folder,
                    previous,
                    prefix=config.registry.snapshot_prefix,
                    timestamp=started,
                )
            )

        logger.step(5, total, "Merging CustomFiles manifest...")
        entries = previous.copy()
        files = [dataclasses.replace(f) for f in scan.files]
        fresh = False
        try:
            merge_manifest(
                entries, files, legacy_field_offset=config.legacy_field_offset
            )
        except ManifestKeyNotFoundError as err:
            logger.verbose("MERGE", f"{err}, building a new manifest")
            build_fresh_manifest(
                entries, files, legacy_field_offset=config.legacy_field_offset
            )
            fresh = True
        manifest = entries[CUSTOM_FILES]
        logger.debug("MERGE", manifest)

        logger.step(6, total, "Writing registry...")
        if dry_run:
            logger.verbose("REGISTRY", "Dry run: registry not written")
        else:
            registry.write_entries(config.registry.path, entries)
            snapshots.append(
                save_snapshot(
                    config.registry.snapshot_folder,
                    entries,
                    prefix=config.registry.snapshot_prefix,
                    timestamp=datetime.now(),
                )
            )

        logger.step(7, total, "Launching deployment manager...")
        dm = config.deployment_manager
        if dry_run or not (launch and dm.launch):
            logger.verbose("LAUNCH", "Launch disabled, not starting the deployment manager")
        else:
            exit_code = launch_deployment_manager(
                dm.path, wait=dm.wait, timeout=dm.timeout
            )
    finally:
        history_written = history.join() if history is not None else False

    if not dry_run:
        prune_files(
            config.registry.snapshot_folder,
            snapshot_pattern(config.registry.snapshot_prefix),
            config.registry.keep_snapshots,
            file_ops,
        )

    logger.verbose(
        "DEPLOY",
        f"{scan.copied_count} copied, {scan.skipped_count} skipped, "
        f"{scan.redundant_count} redundant",
    )

    return DeployResult(
        scan=scan,
        copied=tuple(copied),
        manifest=manifest,
        previous_source=source,
        fresh_manifest=fresh,
        snapshots=tuple(snapshots),
        history_file=history.path if history is not None and history_written else None,
        launch_exit_code=exit_code,
        dry_run=dry_run,
    )
