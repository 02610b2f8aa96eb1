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

"""Public API return types for wdecustoms.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    ```python
    from pathlib import Path
    from wdecustoms.config import load_config
    from wdecustoms.core import scan_customisations

    result = scan_customisations(load_config(Path("config.yaml")))
    print(result.copied_count)
    ```

Note:
    Only public API return types belong in this module. Domain types
    (CustomizationFile, RegistryEntries) live in models.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wdecustoms.models import CustomizationFile, FileStatus


@dataclass(frozen=True)
class ScanResult:
    """Result of scanning and resolving the customisation folders.

    Attributes:
        folders: Customisation folder names, in scan order.
        scanned: Every scanned file, in scan order.
        statuses: Status per scanned file (parallel to ``scanned``).
        files: Files that would be deployed, one per logical identity.
    """

    folders: tuple[str, ...]
    scanned: tuple[CustomizationFile, ...]
    statuses: tuple[FileStatus, ...]
    files: tuple[CustomizationFile, ...]

    def count(self, status: FileStatus) -> int:
        return sum(1 for s in self.statuses if s is status)

    @property
    def copied_count(self) -> int:
        return self.count(FileStatus.COPIED)

    @property
    def skipped_count(self) -> int:
        return self.count(FileStatus.SKIP)

    @property
    def redundant_count(self) -> int:
        return self.count(FileStatus.REDUNDANT)


@dataclass(frozen=True)
class DeployResult:
    """Result of a deploy run.

    Attributes:
        scan: Scan and resolution outcome.
        copied: Destination paths written in the installation folder.
        manifest: CustomFiles value written to the registry.
        previous_source: Where the previous entries came from ("registry",
            "snapshot" or "none").
        fresh_manifest: True if there was no previous CustomFiles value.
        snapshots: Snapshot files written during the run.
        history_file: History report path, None if it was not written.
        launch_exit_code: Deployment manager exit code, None if it was not
            launched or not waited for.
        dry_run: True if nothing was written.
    """

    scan: ScanResult
    copied: tuple[Path, ...]
    manifest: str
    previous_source: str
    fresh_manifest: bool
    snapshots: tuple[Path, ...]
    history_file: Path | None
    launch_exit_code: int | None
    dry_run: bool = False
