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

"""Human-readable history report of a deploy run.

The report lists the customisation folders that were scanned and the status
of every scanned file:

    Program version: 1.0.0
    Started by: jdoe

    Collected folders
    CustomerA
    CustomerB

    Collected files statuses
    [COPIED   ]CustomerA\\Genesys.Desktop.Modules.Foo.dll
    [SKIP     ]CustomerB\\Genesys.Desktop.Modules.Foo.dll
    [REDUNDANT]CustomerB\\readme.txt

It is written by a background thread started as soon as resolution is done.
The thread works on its own copies of the data, and a failure only produces
a warning: the deploy run never fails because of the report.
"""

from __future__ import annotations

from datetime import datetime
import getpass
import os
from pathlib import Path
import threading
from typing import Sequence

from wdecustoms.exceptions import WDECustomsError
from wdecustoms.io.files import FileOperations, LocalFileOperations
from wdecustoms.models import CustomizationFile, FileStatus
from wdecustoms.registry.snapshots import prune_files, snapshot_pattern, timestamp_suffix

UNKNOWN_USER = "Can't resolve User Name"


def current_user() -> str:
    """Name of the user running the tool."""
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        return UNKNOWN_USER


def _short_path(file: CustomizationFile, root: Path) -> str:
    if file.source_path is None:
        return os.path.join(file.relative_path, file.file_name)
    try:
        return os.path.relpath(file.source_path, root)
    except ValueError:
        # Different drive on Windows
        return str(file.source_path)


def render_history(
    folders: Sequence[str],
    statuses: Sequence[tuple[FileStatus, str]],
    *,
    version: str,
    user: str,
) -> str:
    """Render the history report text.

    Args:
        folders: Scanned customisation folder names.
        statuses: (status, path relative to the customisations root) per
            scanned file, in scan order.
        version: Program version.
        user: Name of the user who started the run.
    """
    lines = [f"Program version: {version}", f"Started by: {user}", "", "Collected folders"]
    lines.extend(folders)
    lines.extend(["", "Collected files statuses"])
    lines.extend(f"{status.label}{path}" for status, path in statuses)
    return "\n".join(lines) + "\n"


def history_file_path(folder: Path, prefix: str, started: datetime | None = None) -> Path:
    """Report path named `<prefix>_<YYYY.MM.DD_HHMMSS>.txt`."""
    return folder / f"{prefix}_{timestamp_suffix(started)}.txt"


class HistoryWriter:
    """Writes the history report on a background thread.

    Example:
        ```python
        writer = HistoryWriter(
            config.history.folder / "WDECustoms_History_2025.03.14_093012.txt",
            folders, scanned, resolved.statuses, config.customisations_folder,
        )
        writer.start()
        ...  # copy files, write registry, launch the deployment manager
        if not writer.join():
            print("history report was not written")
        ```
    """

    def __init__(
        self,
        path: Path,
        folders: Sequence[str],
        files: Sequence[CustomizationFile],
        statuses: Sequence[FileStatus],
        customisations_root: Path,
        *,
        prefix: str = "WDECustoms_History",
        keep: int = 15,
        file_ops: FileOperations | None = None,
    ) -> None:
        if len(files) != len(statuses):
            raise ValueError(
                f"{len(files)} files but {len(statuses)} statuses for the history report"
            )
        self.path = path
        self._folders = tuple(folders)
        self._statuses = tuple(
            (status, _short_path(file, customisations_root))
            for file, status in zip(files, statuses)
        )
        self._prefix = prefix
        self._keep = keep
        self._file_ops = file_ops if file_ops is not None else LocalFileOperations()
        self._succeeded = False
        self._thread = threading.Thread(
            target=self._run, name="wdecustoms-history", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the report and return True if it was written."""
        self._thread.join(timeout)
        return self._succeeded and not self._thread.is_alive()

    def _run(self) -> None:
        from wdecustoms import __version__
        from wdecustoms.logging import get_global_logger

        logger = get_global_logger()
        text = render_history(
            self._folders, self._statuses, version=__version__, user=current_user()
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(text, encoding="utf-8")
        except OSError as err:
            logger.warning("HISTORY", f"History file not written: {err}")
            return

        self._succeeded = True
        logger.verbose("HISTORY", f"History written to {self.path}")

        try:
            prune_files(
                self.path.parent,
                snapshot_pattern(self._prefix, ".txt"),
                self._keep,
                self._file_ops,
            )
        except (WDECustomsError, OSError) as err:
            logger.warning("HISTORY", f"Cannot clear old history files: {err}")
