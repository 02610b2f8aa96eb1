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

"""Registry access for the deployment manager configuration.

The merge logic never talks to the registry API. It works on
RegistryEntries, and a RegistryStore moves those entries in and out of
wherever they live:

- WinRegistryStore: the real HKEY_CURRENT_USER key (Windows only)
- MemoryRegistryStore: a dict of key path -> entries, for tests and dry runs

Example:
    ```python
    from wdecustoms.registry import MemoryRegistryStore

    store = MemoryRegistryStore()
    entries = store.read_entries(r"Software\\Genesys\\DeploymentManager")
    entries.set("AddCustomFile", "True")
    store.write_entries(r"Software\\Genesys\\DeploymentManager", entries)
    ```
"""

from __future__ import annotations

import sys
from typing import Protocol

from wdecustoms.exceptions import RegistryError
from wdecustoms.models import RegistryEntries


class RegistryStore(Protocol):
    """Protocol for registry backends."""

    def read_entries(self, path: str) -> RegistryEntries:
        """Read every value under ``path`` (empty entries if the key is absent)."""
        ...

    def write_entries(self, path: str, entries: RegistryEntries) -> None:
        """Write every entry under ``path``, creating the key if needed."""
        ...


class WinRegistryStore:
    """RegistryStore backed by HKEY_CURRENT_USER via the stdlib winreg module.

    Only string values are supported. A key holding any other value type
    (REG_DWORD, REG_MULTI_SZ, REG_BINARY, ...) cannot be rewritten without
    changing that value, so reading it raises RegistryError. REG_EXPAND_SZ
    values keep their type when the key is written back; everything else
    is written as REG_SZ.
    """

    def __init__(self) -> None:
        if sys.platform != "win32":
            raise RegistryError(
                f"Windows registry access is not available on {sys.platform}"
            )
        # key path -> names read as REG_EXPAND_SZ
        self._expand_names: dict[str, set[str]] = {}

    def read_entries(self, path: str) -> RegistryEntries:
        import winreg

        from wdecustoms.logging import get_global_logger

        logger = get_global_logger()
        entries = RegistryEntries()
        expand_names: set[str] = set()
        try:
            key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, path, 0, winreg.KEY_READ)
        except FileNotFoundError:
            logger.verbose("REGISTRY", f"Key not found: HKCU\\{path}")
            self._expand_names[path] = expand_names
            return entries
        except OSError as err:
            raise RegistryError(f"cannot open HKCU\\{path}: {err}") from err

        try:
            with key:
                index = 0
                while True:
                    try:
                        name, data, value_type = winreg.EnumValue(key, index)
                    except OSError:
                        # ERROR_NO_MORE_ITEMS
                        break
                    if value_type not in (winreg.REG_SZ, winreg.REG_EXPAND_SZ):
                        raise RegistryError(
                            f"value {name!r} in HKCU\\{path} is not a string "
                            f"(registry type {value_type})"
                        )
                    if value_type == winreg.REG_EXPAND_SZ:
                        expand_names.add(name)
                    entries.set(name, "" if data is None else data)
                    index += 1
        except OSError as err:
            raise RegistryError(f"cannot read HKCU\\{path}: {err}") from err

        self._expand_names[path] = expand_names
        logger.verbose("REGISTRY", f"Read {len(entries)} value(s) from HKCU\\{path}")
        return entries

    def write_entries(self, path: str, entries: RegistryEntries) -> None:
        import winreg

        from wdecustoms.logging import get_global_logger

        logger = get_global_logger()
        expand_names = self._expand_names.get(path, set())
        try:
            with winreg.CreateKeyEx(
                winreg.HKEY_CURRENT_USER, path, 0, winreg.KEY_WRITE
            ) as key:
                for name, data in entries.items():
                    value_type = (
                        winreg.REG_EXPAND_SZ if name in expand_names else winreg.REG_SZ
                    )
                    winreg.SetValueEx(key, name, 0, value_type, data)
        except OSError as err:
            raise RegistryError(f"cannot write HKCU\\{path}: {err}") from err

        logger.verbose("REGISTRY", f"Wrote {len(entries)} value(s) to HKCU\\{path}")


class MemoryRegistryStore:
    """In-memory RegistryStore.

    Entries are copied on the way in and out, so callers never share state
    with the store.

    Attributes:
        keys: Key path -> stored entries.
        writes: Number of write_entries calls.
    """

    def __init__(self, keys: dict[str, RegistryEntries] | None = None) -> None:
        self.keys: dict[str, RegistryEntries] = {
            path: entries.copy() for path, entries in (keys or {}).items()
        }
        self.writes = 0

    def read_entries(self, path: str) -> RegistryEntries:
        stored = self.keys.get(path)
        return stored.copy() if stored is not None else RegistryEntries()

    def write_entries(self, path: str, entries: RegistryEntries) -> None:
        self.keys[path] = entries.copy()
        self.writes += 1


def default_registry_store() -> RegistryStore:
    """Return the platform registry store (WinRegistryStore on Windows)."""
    return WinRegistryStore()
