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

"""Merging freshly resolved files into the previous CustomFiles manifest.

Operators hand-edit DataFile, EntryPoint, IsMainConfigFile, Optional and
GroupName in the deployment manager. A re-scan only knows the defaults, so
for every file that was already listed in the previous manifest those five
attributes are carried over. Files that are new keep their defaults; files
that disappeared from the customisation folders drop out.

Only the in-memory RegistryEntries are changed; writing them back to the
registry is the caller's job.
"""

from __future__ import annotations

from typing import Sequence

from wdecustoms.exceptions import ManifestKeyNotFoundError
from wdecustoms.manifest.codec import decode_manifest, encode_manifest
from wdecustoms.models import (
    ADD_CUSTOM_FILE,
    CUSTOM_FILES,
    CustomizationFile,
    RegistryEntries,
)


def set_add_custom_file(entries: RegistryEntries) -> None:
    """Force AddCustomFile to "True" (insert or overwrite)."""
    entries.set(ADD_CUSTOM_FILE, "True")


def carry_over_attributes(
    files: Sequence[CustomizationFile], previous: Sequence[CustomizationFile]
) -> int:
    """Copy operator attributes from matching previous entries onto ``files``.

    When several previous entries share an identity, the last one wins.

    Returns:
        Number of files that had a previous entry.
    """
    latest: dict[tuple[str, str], CustomizationFile] = {}
    for entry in previous:
        latest[entry.key] = entry

    matched = 0
    for file in files:
        prior = latest.get(file.key)
        if prior is not None:
            file.copy_attributes_from(prior)
            matched += 1
    return matched


def merge_manifest(
    entries: RegistryEntries,
    files: Sequence[CustomizationFile],
    *,
    legacy_field_offset: bool = True,
) -> list[CustomizationFile]:
    """Merge ``files`` into the CustomFiles manifest held by ``entries``.

    Steps:
      1) Set AddCustomFile to "True".
      2) Find CustomFiles; raise ManifestKeyNotFoundError if absent.
      3) Decode the previous manifest and carry operator attributes over to
         the matching files (mutates ``files``).
      4) Encode ``files`` and store the result in CustomFiles.

    Args:
        entries: Previous registry entries; updated in place.
        files: Resolved files in manifest order.
        legacy_field_offset: Encode with the historical shifted layout.

    Returns:
        The merged file list (the same objects as ``files``).

    Raises:
        ManifestKeyNotFoundError: If there is no CustomFiles entry. Only
            AddCustomFile has been changed at that point.
        ManifestDecodeError: If the previous manifest cannot be decoded.

    Example:
        ```python
        try:
            merge_manifest(entries, resolved.files)
        except ManifestKeyNotFoundError:
            build_fresh_manifest(entries, resolved.files)
        ```
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    set_add_custom_file(entries)

    previous_text = entries.get(CUSTOM_FILES)
    if previous_text is None:
        raise ManifestKeyNotFoundError(
            f'not found {CUSTOM_FILES} key in previous registry data'
        )

    previous = decode_manifest(previous_text)
    logger.verbose("MERGE", f"Previous manifest lists {len(previous)} file(s)")

    matched = carry_over_attributes(files, previous)
    logger.verbose(
        "MERGE",
        f"{matched} of {len(files)} file(s) keep their previous attributes, "
        f"{len(files) - matched} new",
    )

    entries.set(
        CUSTOM_FILES, encode_manifest(files, legacy_field_offset=legacy_field_offset)
    )
    return list(files)


def build_fresh_manifest(
    entries: RegistryEntries,
    files: Sequence[CustomizationFile],
    *,
    legacy_field_offset: bool = True,
) -> list[CustomizationFile]:
    """Write a brand-new CustomFiles manifest from ``files`` as they are.

    Used when the previous entries have no CustomFiles value.
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    set_add_custom_file(entries)
    entries.set(
        CUSTOM_FILES, encode_manifest(files, legacy_field_offset=legacy_field_offset)
    )
    logger.verbose("MERGE", f"Built new manifest with {len(files)} file(s)")
    return list(files)
