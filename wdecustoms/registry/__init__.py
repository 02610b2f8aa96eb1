"""
Registry access and registry snapshots for wdecustoms.

Modules
-------
store : module
    RegistryStore capability with Windows and in-memory backends.
snapshots : module
    Timestamped YAML copies of the registry entries.
"""

from .snapshots import (
    find_latest_snapshot,
    list_matching_files,
    load_snapshot,
    prune_files,
    save_snapshot,
    snapshot_pattern,
    timestamp_suffix,
)
from .store import (
    MemoryRegistryStore,
    RegistryStore,
    WinRegistryStore,
    default_registry_store,
)

__all__ = [
    "MemoryRegistryStore",
    "RegistryStore",
    "WinRegistryStore",
    "default_registry_store",
    "find_latest_snapshot",
    "list_matching_files",
    "load_snapshot",
    "prune_files",
    "save_snapshot",
    "snapshot_pattern",
    "timestamp_suffix",
]
