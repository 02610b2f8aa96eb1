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

"""Customisation folder scanning.

The customisations root holds one subfolder per customer/customisation:

    Customisations/
      CustomerA/
        Custom.Module.dll
        Languages/Custom.Module.en-US.xml
      CustomerB/
        Custom.Module.dll

Each subfolder mirrors the layout of the WDE installation folder. Every file
found becomes one CustomizationFile whose relative_path is its directory
relative to the subfolder root (""), so CustomerA/Custom.Module.dll and
CustomerB/Custom.Module.dll are the same logical file.

Directory entries are visited in sorted order, which makes the scan order
(and therefore the duplicate tie-break) stable for a given tree.

Any filesystem error aborts the scan with ScanError; no partial results are
returned.
"""

from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path
from typing import Callable

from wdecustoms.exceptions import NoSubdirectoriesError, ScanError
from wdecustoms.models import CustomizationFile, FileVersion
from wdecustoms.scanning.version import probe_file_version

VersionProbe = Callable[[Path], FileVersion]


def list_customisation_folders(root: Path) -> list[str]:
    """List the immediate subfolders of the customisations root.

    Args:
        root: Customisations root folder.

    Returns:
        Subfolder names, sorted.

    Raises:
        ScanError: If the root cannot be read.
        NoSubdirectoriesError: If the root has no subfolders.

    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    try:
        entries = sorted(os.scandir(root), key=lambda e: e.name)
    except OSError as err:
        raise ScanError(f"cannot read customisations folder {root}: {err}") from err

    folders: list[str] = []
    for entry in entries:
        try:
            if entry.is_dir():
                folders.append(entry.name)
        except OSError as err:
            raise ScanError(f"cannot stat {entry.path}: {err}") from err

    if not folders:
        raise NoSubdirectoriesError(f'Directory "{root}" does not contain subdirectories')

    logger.verbose("SCAN", f"Found {len(folders)} customisation folder(s) in {root}")
    for name in folders:
        logger.debug("SCAN", f"  {name}")
    return folders


def _raise_walk_error(err: OSError) -> None:
    raise ScanError(f"cannot walk {err.filename}: {err}") from err


def build_customisation_file(
    file_path: Path, folder_root: Path, probe: VersionProbe = probe_file_version
) -> CustomizationFile:
    """Build the candidate record for one scanned file.

    Args:
        file_path: Absolute path of the file.
        folder_root: Root of the customisation subfolder the file lives in.
        probe: Version probe (defaults to probe_file_version).

    Returns:
        A CustomizationFile with default deployment attributes.

    Raises:
        ScanError: If the file cannot be stat'ed.

    """
    try:
        stat = file_path.stat()
    except OSError as err:
        raise ScanError(f"cannot stat {file_path}: {err}") from err

    relative_dir = os.path.dirname(os.path.relpath(file_path, folder_root))
    return CustomizationFile(
        file_name=file_path.name,
        relative_path="" if relative_dir in ("", ".") else relative_dir,
        source_path=file_path,
        last_write_time=datetime.fromtimestamp(stat.st_mtime),
        mtime_ns=stat.st_mtime_ns,
        version=probe(file_path),
    )


def collect_customisation_files(
    folder: Path, probe: VersionProbe = probe_file_version
) -> list[CustomizationFile]:
    """Walk one customisation subfolder and build a candidate per file.

    Args:
        folder: Customisation subfolder.
        probe: Version probe (defaults to probe_file_version).

    Returns:
        Candidates in walk order (directories sorted, files sorted).

    Raises:
        ScanError: On any walk or stat error.

    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    folder = folder.resolve()
    if not folder.is_dir():
        raise ScanError(f"not a directory: {folder}")

    collected: list[CustomizationFile] = []
    for dirpath, dirnames, filenames in os.walk(folder, onerror=_raise_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            candidate = build_customisation_file(Path(dirpath) / name, folder, probe)
            logger.debug(
                "SCAN",
                f"{candidate.source_path} (version {candidate.version}, "
                f"modified {candidate.last_write_time:%Y-%m-%d %H:%M:%S})",
            )
            collected.append(candidate)

    logger.verbose("SCAN", f"{folder.name}: {len(collected)} file(s)")
    return collected


def scan_customisations(
    root: Path, probe: VersionProbe = probe_file_version
) -> tuple[list[str], list[CustomizationFile]]:
    """Scan every customisation subfolder of ``root``.

    Args:
        root: Customisations root folder.
        probe: Version probe (defaults to probe_file_version).

    Returns:
        Tuple of (folder names, candidates in scan order).

    Raises:
        NoSubdirectoriesError: If the root has no subfolders.
        ScanError: On any filesystem error.

    """
    folders = list_customisation_folders(root)
    files: list[CustomizationFile] = []
    for name in folders:
        files.extend(collect_customisation_files(root / name, probe))
    return folders, files
