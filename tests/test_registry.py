"""
Tests for wdecustoms.registry.store module.

Tests registry backends including:
- In-memory store isolation
- Windows registry store guards and error mapping
"""

from __future__ import annotations

import sys
from unittest.mock import patch

import pytest

from wdecustoms.exceptions import RegistryError
from wdecustoms.models import RegistryEntries
from wdecustoms.registry.store import MemoryRegistryStore, WinRegistryStore

KEY = r"Software\Genesys\DeploymentManager"


class TestMemoryRegistryStore:
    """Tests for MemoryRegistryStore."""

    def test_missing_key_reads_empty(self):
        """Test that an unknown key gives empty entries."""
        assert len(MemoryRegistryStore().read_entries(KEY)) == 0

    def test_write_then_read(self):
        """Test that written entries can be read back."""
        store = MemoryRegistryStore()
        store.write_entries(KEY, RegistryEntries([("A", "1")]))

        assert store.read_entries(KEY) == RegistryEntries([("A", "1")])
        assert store.writes == 1

    def test_entries_are_copied(self):
        """Test that callers never share state with the store."""
        seed = RegistryEntries([("A", "1")])
        store = MemoryRegistryStore({KEY: seed})
        seed.set("A", "changed")

        read = store.read_entries(KEY)
        read.set("A", "also changed")

        assert store.read_entries(KEY)["A"] == "1"


class FakeKey:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeWinreg:
    """Stand-in for the winreg module holding one key under HKCU."""

    HKEY_CURRENT_USER = "HKCU"
    KEY_READ = 0x20019
    KEY_WRITE = 0x20006
    REG_SZ = 1
    REG_EXPAND_SZ = 2
    REG_BINARY = 3
    REG_DWORD = 4
    REG_MULTI_SZ = 7

    def __init__(self, values=None):
        self.values = list(values) if values is not None else None
        self.written = []

    def OpenKey(self, root, path, reserved, access):
        if self.values is None:
            raise FileNotFoundError(path)
        return FakeKey()

    def EnumValue(self, key, index):
        if index >= len(self.values):
            raise OSError("no more items")
        return self.values[index]

    def CreateKeyEx(self, root, path, reserved, access):
        return FakeKey()

    def SetValueEx(self, key, name, reserved, value_type, data):
        self.written.append((name, value_type, data))


@pytest.fixture
def fake_winreg():
    """Factory installing a FakeWinreg and pretending to run on Windows."""
    patches = []

    def _install(values=None):
        fake = FakeWinreg(values)
        patches.extend(
            [patch.dict(sys.modules, {"winreg": fake}), patch.object(sys, "platform", "win32")]
        )
        for p in patches:
            p.start()
        return fake

    yield _install
    for p in reversed(patches):
        p.stop()


class TestWinRegistryStoreValueTypes:
    """Tests for value type handling with a fake winreg module."""

    def test_string_values_round_trip(self, fake_winreg):
        """Test that REG_SZ and REG_EXPAND_SZ keep their types on write."""
        fake = fake_winreg(
            [
                ("CustomFiles", "<x/>", FakeWinreg.REG_SZ),
                ("InstallDir", r"%ProgramFiles%\\GCTI", FakeWinreg.REG_EXPAND_SZ),
            ]
        )
        store = WinRegistryStore()

        entries = store.read_entries(KEY)
        entries.set("AddCustomFile", "True")
        store.write_entries(KEY, entries)

        assert fake.written == [
            ("CustomFiles", FakeWinreg.REG_SZ, "<x/>"),
            ("InstallDir", FakeWinreg.REG_EXPAND_SZ, r"%ProgramFiles%\\GCTI"),
            ("AddCustomFile", FakeWinreg.REG_SZ, "True"),
        ]

    @pytest.mark.parametrize(
        "value",
        [
            ("AutoStart", 1, FakeWinreg.REG_DWORD),
            ("Servers", ["a", "b"], FakeWinreg.REG_MULTI_SZ),
            ("Blob", b"\x01\x02", FakeWinreg.REG_BINARY),
        ],
    )
    def test_non_string_value_is_rejected(self, fake_winreg, value):
        """Test that a key with a non-string value is never rewritten."""
        fake = fake_winreg([("CustomFiles", "<x/>", FakeWinreg.REG_SZ), value])

        with pytest.raises(RegistryError, match="not a string"):
            WinRegistryStore().read_entries(KEY)

        assert fake.written == []

    def test_missing_key(self, fake_winreg):
        """Test that an absent key reads as empty entries."""
        fake_winreg(None)

        assert len(WinRegistryStore().read_entries(KEY)) == 0


@pytest.mark.skipif(sys.platform == "win32", reason="checks the non-Windows guard")
def test_win_registry_store_requires_windows():
    """Test that the Windows store refuses to run elsewhere."""
    with pytest.raises(RegistryError, match="not available"):
        WinRegistryStore()


@pytest.mark.windows
@pytest.mark.skipif(sys.platform != "win32", reason="needs the Windows registry")
class TestWinRegistryStore:
    """Tests against a scratch key under HKEY_CURRENT_USER."""

    SCRATCH = r"Software\wdecustoms-tests"

    @pytest.fixture(autouse=True)
    def cleanup(self):
        import winreg

        yield
        try:
            winreg.DeleteKey(winreg.HKEY_CURRENT_USER, self.SCRATCH)
        except OSError:
            pass

    def test_missing_key_reads_empty(self):
        """Test that a key that does not exist reads as empty."""
        assert len(WinRegistryStore().read_entries(r"Software\wdecustoms-missing")) == 0

    def test_write_then_read(self):
        """Test a real round trip through the registry."""
        store = WinRegistryStore()
        entries = RegistryEntries([("AddCustomFile", "True"), ("CustomFiles", "<x/>\n")])

        store.write_entries(self.SCRATCH, entries)

        assert store.read_entries(self.SCRATCH) == entries
