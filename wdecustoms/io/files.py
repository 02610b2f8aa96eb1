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

"""File operations used by the deploy workflow.

Copying winners into the WDE installation folder and deleting old
snapshot/history files both go through a FileOperations object, so the
deploy workflow can run against a recorder in tests and dry runs.

Key Features:

- Parent directories are created on demand
- shutil.copy2 keeps timestamps; a streamed copy is tried once if it fails
  (locked or read-only attributes on the source)
- Every failure is raised as DeployError, so the run aborts before the
  registry is touched

Example:
    ```python
    from pathlib import Path
    from wdecustoms.io import LocalFileOperations, copy_customisation_files

    copied = copy_customisation_files(
        resolved.files, Path(r"C:\\GCTI\\InteractionWorkspace"), LocalFileOperations()
    )
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import shutil
from typing import Protocol, Sequence

from wdecustoms.exceptions import DeployError
from wdecustoms.models import CustomizationFile


class FileOperations(Protocol):
    """Protocol for the file system side effects of a deploy run."""

    def copy(self, src: Path, dst: Path) -> None:
        """Copy ``src`` to ``dst``, overwriting ``dst``."""
        ...

    def delete(self, path: Path) -> None:
        """Delete the file at ``path``."""
        ...


class LocalFileOperations:
    """FileOperations against the local file system."""

    def copy(self, src: Path, dst: Path) -> None:
        from wdecustoms.logging import get_global_logger

        logger = get_global_logger()
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise DeployError(f"cannot create folder {dst.parent}: {err}") from err

        try:
            shutil.copy2(src, dst)
            return
        except OSError as err:
            logger.debug("COPY", f"copy2 failed for {src} ({err}), retrying as stream")

        try:
            with src.open("rb") as fsrc, dst.open("wb") as fdst:
                shutil.copyfileobj(fsrc, fdst)
        except OSError as err:
            raise DeployError(f"cannot copy {src} to {dst}: {err}") from err

    def delete(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as err:
            raise DeployError(f"cannot delete {path}: {err}") from err


@dataclass
class RecordingFileOperations:
    """FileOperations that only records what would have happened.

    Attributes:
        copies: (src, dst) pairs in call order.
        deletions: Deleted paths in call order.
    """

    copies: list[tuple[Path, Path]] = field(default_factory=list)
    deletions: list[Path] = field(default_factory=list)

    def copy(self, src: Path, dst: Path) -> None:
        self.copies.append((src, dst))

    def delete(self, path: Path) -> None:
        self.deletions.append(path)


def target_path(file: CustomizationFile, target_dir: Path) -> Path:
    """Destination of ``file`` inside the installation folder."""
    if file.relative_path:
        return target_dir / file.relative_path / file.file_name
    return target_dir / file.file_name


def copy_customisation_files(
    files: Sequence[CustomizationFile],
    target_dir: Path,
    file_ops: FileOperations,
) -> list[Path]:
    """Copy every resolved file into ``target_dir``, keeping relative paths.

    Args:
        files: Resolved winners (each must have a source_path).
        target_dir: WDE installation folder.
        file_ops: File operations backend.

    Returns:
        Destination paths in copy order.

    Raises:
        DeployError: If a file has no source path or cannot be copied. Files
            copied before the failure stay in place.
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    copied: list[Path] = []
    for file in files:
        if file.source_path is None:
            raise DeployError(f"no source path for {file.file_name}")
        dst = target_path(file, target_dir)
        logger.debug("COPY", f"{file.source_path} -> {dst}")
        file_ops.copy(file.source_path, dst)
        copied.append(dst)

    logger.verbose("COPY", f"Copied {len(copied)} file(s) into {target_dir}")
    return copied
