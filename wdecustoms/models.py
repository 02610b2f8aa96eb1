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

"""Domain types shared by the scan, resolve and merge stages.

CustomizationFile is the unit that flows through the whole pipeline: the
scanner creates one per physical file, the manifest decoder creates one per
ApplicationFile element of a previous manifest. Two files are the same
logical file when their ``key`` (file name + relative path) is equal.

RegistryEntries is the in-memory copy of the deployment manager registry key
(or of a snapshot file). Only CustomFiles and AddCustomFile are ever
rewritten; every other value passes through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator

CUSTOM_FILES = "CustomFiles"
ADD_CUSTOM_FILE = "AddCustomFile"

FALSE = "false"

_PART_MAX = 0xFFFF


@dataclass(frozen=True, order=True)
class FileVersion:
    """Four-part file version packed into one comparable integer.

    Part 1 occupies bits 48-63, part 4 bits 0-15. Ordering and equality use
    the packed value only.

    Attributes:
        full: Packed 64-bit version.
    """

    full: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.full <= 0xFFFFFFFFFFFFFFFF:
            raise ValueError(f"packed version out of range: {self.full}")

    @classmethod
    def from_parts(cls, v1: int, v2: int, v3: int, v4: int) -> FileVersion:
        for part in (v1, v2, v3, v4):
            if not 0 <= part <= _PART_MAX:
                raise ValueError(f"version part out of range: {part}")
        return cls((v1 << 48) | (v2 << 32) | (v3 << 16) | v4)

    @classmethod
    def from_packed(cls, ms: int, ls: int) -> FileVersion:
        """Build from the two 32-bit halves of VS_FIXEDFILEINFO."""
        return cls(((ms & 0xFFFFFFFF) << 32) | (ls & 0xFFFFFFFF))

    @classmethod
    def parse(cls, text: str) -> FileVersion:
        """Parse a dotted version such as "1.2.3.4" (missing parts are 0)."""
        parts = [p for p in text.strip().split(".") if p]
        if not parts or len(parts) > 4 or not all(p.isdigit() for p in parts):
            raise ValueError(f"not a four-part file version: {text!r}")
        nums = [int(p) for p in parts] + [0] * (4 - len(parts))
        return cls.from_parts(*nums)

    @property
    def parts(self) -> tuple[int, int, int, int]:
        return (
            (self.full >> 48) & _PART_MAX,
            (self.full >> 32) & _PART_MAX,
            (self.full >> 16) & _PART_MAX,
            self.full & _PART_MAX,
        )

    @property
    def is_zero(self) -> bool:
        return self.full == 0

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)


ZERO_VERSION = FileVersion()


class FileStatus(Enum):
    """Outcome of the resolution stage for one scanned file."""

    COPIED = "COPIED"
    SKIP = "SKIP"
    REDUNDANT = "REDUNDANT"

    @property
    def label(self) -> str:
        """Fixed-width label used in the history report."""
        return f"[{self.value:<9}]"


@dataclass
class CustomizationFile:
    """One customisation file, scanned from disk or recovered from a manifest.

    Attributes:
        file_name: File name without directory.
        relative_path: Directory relative to the customisation folder root
            ("" means the application root).
        data_file: Operator-editable "DataFile" flag.
        entry_point: Operator-editable "EntryPoint" flag.
        is_main_config_file: Operator-editable "IsMainConfigFile" flag.
        optional: Operator-editable "Optional" flag.
        group_name: Operator-editable group name.
        source_path: Absolute source path (scanned files only).
        last_write_time: Modification time (scanned files only).
        mtime_ns: Modification time in nanoseconds as reported by the file
            system (scanned files only). Preferred over last_write_time when
            comparing candidates.
        version: Embedded file version, zero when unavailable.
    """

    file_name: str
    relative_path: str = ""
    data_file: str = FALSE
    entry_point: str = FALSE
    is_main_config_file: str = FALSE
    optional: str = FALSE
    group_name: str = ""
    source_path: Path | None = None
    last_write_time: datetime | None = None
    mtime_ns: int | None = None
    version: FileVersion = field(default_factory=FileVersion)

    @property
    def key(self) -> tuple[str, str]:
        """Logical identity used for deduplication and merging."""
        return (self.file_name, self.relative_path)

    def copy_attributes_from(self, other: CustomizationFile) -> None:
        """Take over the five operator-editable attributes of ``other``."""
        self.data_file = other.data_file
        self.entry_point = other.entry_point
        self.is_main_config_file = other.is_main_config_file
        self.optional = other.optional
        self.group_name = other.group_name


class RegistryEntries:
    """Ordered name -> data mapping of one registry key's string values.

    Names are unique. Setting an existing name keeps its position; new
    names are appended.

    Example:
        ```python
        entries = RegistryEntries.from_list([{"name": "Server", "data": "cfg01"}])
        entries.set("AddCustomFile", "True")
        entries.to_list()
        # [{'name': 'Server', 'data': 'cfg01'}, {'name': 'AddCustomFile', 'data': 'True'}]
        ```
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._data: dict[str, str] = {}
        for name, data in items:
            self._data[name] = data

    @classmethod
    def from_list(cls, rows: Iterable[dict[str, Any]]) -> RegistryEntries:
        """Build from the snapshot form, a list of {"name", "data"} dicts."""
        entries = cls()
        for row in rows:
            if not isinstance(row, dict) or "name" not in row:
                raise ValueError(f"invalid registry entry: {row!r}")
            data = row.get("data")
            entries.set(str(row["name"]), "" if data is None else str(data))
        return entries

    def to_list(self) -> list[dict[str, str]]:
        return [{"name": name, "data": data} for name, data in self._data.items()]

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._data.get(name, default)

    def set(self, name: str, data: str) -> None:
        self._data[name] = data

    def copy(self) -> RegistryEntries:
        return RegistryEntries(self._data.items())

    def items(self) -> list[tuple[str, str]]:
        return list(self._data.items())

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __getitem__(self, name: str) -> str:
        return self._data[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistryEntries):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"RegistryEntries({self.items()!r})"
