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

"""Duplicate resolution for scanned customisation files.

Several customisation folders may ship the same logical file (same name and
relative path). Exactly one copy is deployed, chosen by:

1. Higher file version (packed 64-bit value) wins.
2. Equal versions: the later modification time wins.
3. Both equal: the copy scanned first is kept.

Resolution runs in one pass over the scan order, keeping a mapping from
logical identity to the current best candidate. The result is the same as
comparing every pair: one COPIED file per identity, every challenger that
lost (or was replaced) marked SKIP, redundant files marked REDUNDANT.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Sequence

from wdecustoms.models import CustomizationFile, FileStatus
from wdecustoms.resolution.redundancy import check_redundancy


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of duplicate resolution.

    Attributes:
        files: One winner per logical identity, ordered by the first scan
            position of that identity. Redundant files are excluded.
        statuses: Status of every input file, parallel to the input list.
    """

    files: list[CustomizationFile]
    statuses: list[FileStatus]

    @property
    def copied_count(self) -> int:
        return sum(1 for s in self.statuses if s is FileStatus.COPIED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for s in self.statuses if s is FileStatus.SKIP)

    @property
    def redundant_count(self) -> int:
        return sum(1 for s in self.statuses if s is FileStatus.REDUNDANT)


def _mtime_key(file: CustomizationFile) -> int | float:
    # Manifest-recovered entries have no mtime; they sort oldest.
    if file.mtime_ns is not None:
        return file.mtime_ns
    if file.last_write_time is not None:
        return round(file.last_write_time.timestamp() * 1_000_000) * 1_000
    return float("-inf")


def compare_files(first: CustomizationFile, second: CustomizationFile) -> int:
    """Compare two candidates for the same logical file.

    Returns:
        1 if ``first`` should be deployed, -1 if ``second`` should be, 0 if
        they are equal in version and modification time.
    """
    if first.version.full != second.version.full:
        return 1 if first.version.full > second.version.full else -1
    a = _mtime_key(first)
    b = _mtime_key(second)
    return (a > b) - (a < b)


def resolve_duplicates(
    files: Sequence[CustomizationFile], rules: Sequence[re.Pattern[str]]
) -> ResolutionResult:
    """Filter redundant files and pick one winner per logical identity.

    Args:
        files: Candidates in scan order.
        rules: Compiled redundancy rules (see compile_redundancy_rules).

    Returns:
        ResolutionResult with the winners and a status per input file.

    Example:
        ```python
        rules = compile_redundancy_rules([])
        result = resolve_duplicates(scanned, rules)
        for file, status in zip(scanned, result.statuses):
            print(status.label, file.source_path)
        ```
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    statuses: list[FileStatus] = []
    best: dict[tuple[str, str], int] = {}
    order: list[tuple[str, str]] = []

    for index, candidate in enumerate(files):
        rule = check_redundancy(candidate, rules)
        if rule is not None:
            logger.debug(
                "RESOLVE", f"REDUNDANT {candidate.file_name} (matched '{rule.pattern}')"
            )
            statuses.append(FileStatus.REDUNDANT)
            continue

        key = candidate.key
        current = best.get(key)
        if current is None:
            best[key] = index
            order.append(key)
            statuses.append(FileStatus.COPIED)
            continue

        if compare_files(candidate, files[current]) > 0:
            logger.debug(
                "RESOLVE",
                f"{candidate.source_path} replaces {files[current].source_path}",
            )
            statuses[current] = FileStatus.SKIP
            best[key] = index
            statuses.append(FileStatus.COPIED)
        else:
            logger.debug(
                "RESOLVE",
                f"{candidate.source_path} skipped, {files[current].source_path} kept",
            )
            statuses.append(FileStatus.SKIP)

    result = ResolutionResult(files=[files[best[key]] for key in order], statuses=statuses)
    logger.verbose(
        "RESOLVE",
        f"{len(files)} scanned: {result.copied_count} to copy, "
        f"{result.skipped_count} skipped, {result.redundant_count} redundant",
    )
    return result
