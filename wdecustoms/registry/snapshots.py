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

"""Timestamped registry snapshots.

Every deploy run saves the registry entries it is about to overwrite and the
entries it wrote, as YAML files in the snapshot folder:

    registry/WDECustoms_Registry_2025.03.14_093012.yaml

    - name: AddCustomFile
      data: 'True'
    - name: CustomFiles
      data: "<?xml version=\\"1.0\\" encoding=\\"utf-16\\"?>\\n..."

The most recently modified snapshot is the fallback source of the previous
manifest when the live registry cannot be trusted (``registry.source:
snapshot``) or holds nothing. Old snapshots are pruned after a successful
run.

Example:
    ```python
    from pathlib import Path
    from wdecustoms.registry import find_latest_snapshot, load_snapshot

    latest = find_latest_snapshot(Path("registry"), "WDECustoms_Registry")
    if latest is not None:
        entries = load_snapshot(latest)
    ```
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import re

import yaml

from wdecustoms.exceptions import SnapshotError
from wdecustoms.io.files import FileOperations
from wdecustoms.models import RegistryEntries

TIMESTAMP_FORMAT = "%Y.%m.%d_%H%M%S"


def timestamp_suffix(moment: datetime | None = None) -> str:
    """Format ``moment`` (default now) the way snapshot and history names use it."""
    return (moment or datetime.now()).strftime(TIMESTAMP_FORMAT)


def snapshot_pattern(prefix: str, extension: str = ".yaml") -> re.Pattern[str]:
    """Regex matching file names created with ``prefix`` and ``extension``."""
    return re.compile(rf"^{re.escape(prefix)}.*{re.escape(extension)}$")


def _unique_path(folder: Path, stem: str, extension: str) -> Path:
    candidate = folder / f"{stem}{extension}"
    counter = 1
    while candidate.exists():
        candidate = folder / f"{stem}_{counter}{extension}"
        counter += 1
    return candidate


def save_snapshot(
    folder: Path,
    entries: RegistryEntries,
    *,
    prefix: str,
    timestamp: datetime | None = None,
) -> Path:
    """Write ``entries`` to a new timestamped snapshot file.

    A second snapshot within the same second gets a ``_1``, ``_2``... suffix
    instead of overwriting the first.

    Args:
        folder: Snapshot folder (created if missing).
        entries: Registry entries to save.
        prefix: File name prefix.
        timestamp: Time used in the file name (default now).

    Returns:
        Path of the written snapshot.

    Raises:
        SnapshotError: If the folder or file cannot be written.
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    try:
        folder.mkdir(parents=True, exist_ok=True)
        path = _unique_path(folder, f"{prefix}_{timestamp_suffix(timestamp)}", ".yaml")
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(
                entries.to_list(),
                f,
                allow_unicode=True,
                default_flow_style=False,
                sort_keys=False,
            )
    except OSError as err:
        raise SnapshotError(f"cannot save registry snapshot in {folder}: {err}") from err

    logger.verbose("SNAPSHOT", f"Saved {len(entries)} value(s) to {path.name}")
    return path


def list_matching_files(folder: Path, pattern: re.Pattern[str]) -> list[Path]:
    """Files in ``folder`` whose names match ``pattern``, oldest first.

    Ordering is by modification time, then by name.
    """
    if not folder.is_dir():
        return []
    matches = [p for p in folder.iterdir() if p.is_file() and pattern.match(p.name)]
    return sorted(matches, key=lambda p: (p.stat().st_mtime, p.name))


def find_latest_snapshot(folder: Path, prefix: str) -> Path | None:
    """Return the most recently modified snapshot, or None if there is none."""
    matches = list_matching_files(folder, snapshot_pattern(prefix))
    return matches[-1] if matches else None


def load_snapshot(path: Path) -> RegistryEntries:
    """Load registry entries from a snapshot file.

    Raises:
        SnapshotError: If the file cannot be read, is not valid YAML, or is
            not a list of {name, data} mappings.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as err:
        raise SnapshotError(f"cannot read registry snapshot {path}: {err}") from err
    except yaml.YAMLError as err:
        raise SnapshotError(f"invalid registry snapshot {path}: {err}") from err

    if data is None:
        return RegistryEntries()
    if not isinstance(data, list):
        raise SnapshotError(f"registry snapshot must be a list of entries: {path}")
    try:
        return RegistryEntries.from_list(data)
    except ValueError as err:
        raise SnapshotError(f"invalid registry snapshot {path}: {err}") from err


def prune_files(
    folder: Path,
    pattern: re.Pattern[str],
    keep: int,
    file_ops: FileOperations,
) -> list[Path]:
    """Delete all but the ``keep`` newest files in ``folder`` matching ``pattern``.

    Returns:
        The deleted paths, oldest first.
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    matches = list_matching_files(folder, pattern)
    stale = matches[: max(len(matches) - keep, 0)]
    for path in stale:
        logger.debug("PRUNE", f"Deleting {path}")
        file_ops.delete(path)
    if stale:
        logger.verbose("PRUNE", f"Removed {len(stale)} old file(s) from {folder}")
    return stale
