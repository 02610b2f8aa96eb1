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

"""File version extraction for wdecustoms.

This module reads the FileVersion of the VS_FIXEDFILEINFO block embedded in
Windows PE files (.dll, .exe). The four 16-bit parts are packed into one
comparable 64-bit integer (see FileVersion). It tries multiple backends in
order of preference.

Backend Priority:

On Windows:

1. Win32 version API (version.dll via ctypes: GetFileVersionInfoW /
   VerQueryValueW), the same data Explorer shows on the Details tab

On every platform (and as fallback when version.dll cannot be loaded):

2. Resource scan: for files starting with the "MZ" PE magic, search a
   memory map of the file for the VS_VERSION_INFO key and the 0xFEEF04BD
   VS_FIXEDFILEINFO signature that follows it. Other files are never read
   past their first two bytes.

Most customisation files (.xml, .config, images) carry no version resource.
That is reported as VersionUnavailableError; probe_file_version() turns it
into the zero version so the scan never fails because of it.

Example:
    Read a version:

        from pathlib import Path
        from wdecustoms.scanning.version import probe_file_version

        version = probe_file_version(Path("Custom.Module.dll"))
        print(version)  # 8.5.118.5

Note:
    This is pure file introspection. Errors are chained for debugging
    (check 'from err' clause).

"""

from __future__ import annotations

import ctypes
import mmap
from pathlib import Path
import struct
import sys

from wdecustoms.exceptions import VersionUnavailableError
from wdecustoms.models import ZERO_VERSION, FileVersion

VS_FIXEDFILEINFO_SIGNATURE = 0xFEEF04BD

_VERSION_INFO_KEY = "VS_VERSION_INFO".encode("utf-16-le")
_SIGNATURE_BYTES = struct.pack("<I", VS_FIXEDFILEINFO_SIGNATURE)
# dwSignature, dwStrucVersion, dwFileVersionMS, dwFileVersionLS
_FIXED_HEAD = struct.Struct("<4I")
# The fixed block starts after the UTF-16 key, its terminator and padding.
_SIGNATURE_SEARCH_WINDOW = 64
# DOS header magic; every PE file starts with it.
_PE_MAGIC = b"MZ"


class _VSFixedFileInfo(ctypes.Structure):
    _fields_ = [
        ("dwSignature", ctypes.c_uint32),
        ("dwStrucVersion", ctypes.c_uint32),
        ("dwFileVersionMS", ctypes.c_uint32),
        ("dwFileVersionLS", ctypes.c_uint32),
        ("dwProductVersionMS", ctypes.c_uint32),
        ("dwProductVersionLS", ctypes.c_uint32),
        ("dwFileFlagsMask", ctypes.c_uint32),
        ("dwFileFlags", ctypes.c_uint32),
        ("dwFileOS", ctypes.c_uint32),
        ("dwFileType", ctypes.c_uint32),
        ("dwFileSubtype", ctypes.c_uint32),
        ("dwFileDateMS", ctypes.c_uint32),
        ("dwFileDateLS", ctypes.c_uint32),
    ]


def _load_version_dll():
    """Return the version.dll handle, or None when not on Windows."""
    if not sys.platform.startswith("win"):
        return None
    try:
        return ctypes.WinDLL("version.dll")  # type: ignore[attr-defined]
    except OSError:
        return None


def _version_from_win32(version_dll, p: Path) -> FileVersion:
    """Read the file version through the Win32 version API."""
    path = str(p)
    size = version_dll.GetFileVersionInfoSizeW(ctypes.c_wchar_p(path), None)
    if size <= 0:
        raise VersionUnavailableError(f"no version resource: {p}")

    buffer = ctypes.create_string_buffer(size)
    if not version_dll.GetFileVersionInfoW(ctypes.c_wchar_p(path), 0, size, buffer):
        raise VersionUnavailableError(f"GetFileVersionInfo failed: {p}")

    fixed_ptr = ctypes.c_void_p()
    fixed_len = ctypes.c_uint()
    if not version_dll.VerQueryValueW(
        buffer,
        ctypes.c_wchar_p("\\"),
        ctypes.byref(fixed_ptr),
        ctypes.byref(fixed_len),
    ) or not fixed_ptr.value:
        raise VersionUnavailableError(f"VerQueryValue failed: {p}")

    fixed = ctypes.cast(fixed_ptr, ctypes.POINTER(_VSFixedFileInfo)).contents
    if fixed.dwSignature != VS_FIXEDFILEINFO_SIGNATURE:
        raise VersionUnavailableError(f"invalid VS_FIXEDFILEINFO signature: {p}")
    return FileVersion.from_packed(fixed.dwFileVersionMS, fixed.dwFileVersionLS)


def version_from_resource_bytes(data: bytes | mmap.mmap) -> FileVersion:
    """Extract the file version from raw file bytes.

    Searches for the UTF-16 ``VS_VERSION_INFO`` key and reads the
    VS_FIXEDFILEINFO block whose signature follows it.

    Args:
        data: Complete file content, as bytes or a memory map.

    Returns:
        The packed file version.

    Raises:
        VersionUnavailableError: If no version block is present.

    """
    start = 0
    while True:
        key_at = data.find(_VERSION_INFO_KEY, start)
        if key_at == -1:
            raise VersionUnavailableError("no VS_VERSION_INFO block found")

        window_start = key_at + len(_VERSION_INFO_KEY)
        window = data[window_start : window_start + _SIGNATURE_SEARCH_WINDOW]
        sig_at = window.find(_SIGNATURE_BYTES)
        if sig_at != -1:
            offset = window_start + sig_at
            if offset + _FIXED_HEAD.size <= len(data):
                _, _, ms, ls = _FIXED_HEAD.unpack_from(data, offset)
                return FileVersion.from_packed(ms, ls)
        start = key_at + 1


def read_file_version(file_path: str | Path) -> FileVersion:
    """Read the embedded FileVersion of a file.

    Uses the Win32 version API on Windows, otherwise (or when version.dll is
    unavailable) scans the file bytes for the version resource.

    Args:
        file_path: Path to the file.

    Returns:
        The packed file version.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        VersionUnavailableError: If the file carries no version resource.
        OSError: If the file cannot be read.

    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    p = Path(file_path)
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")

    version_dll = _load_version_dll()
    if version_dll is not None:
        logger.debug("VERSION", "Trying backend: win32 version API...")
        return _version_from_win32(version_dll, p)

    logger.debug("VERSION", "Trying backend: resource scan...")
    return _version_from_file_scan(p)


def _version_from_file_scan(p: Path) -> FileVersion:
    """Resource scan over a memory map, skipping files that are not PE images."""
    with p.open("rb") as f:
        if f.read(len(_PE_MAGIC)) != _PE_MAGIC:
            raise VersionUnavailableError(f"not a PE file: {p}")
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as data:
            try:
                return version_from_resource_bytes(data)
            except VersionUnavailableError as err:
                raise VersionUnavailableError(f"{err}: {p}") from err


def probe_file_version(file_path: str | Path) -> FileVersion:
    """Read the file version, substituting zero when it is unavailable.

    Never raises for a missing version resource or an unreadable file; the
    failure is logged at debug level.

    Args:
        file_path: Path to the file.

    Returns:
        The file version, or the zero version.

    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    try:
        version = read_file_version(file_path)
    except (VersionUnavailableError, OSError) as err:
        logger.debug("VERSION", f"No version for {Path(file_path).name}: {err}")
        return ZERO_VERSION
    logger.debug("VERSION", f"{Path(file_path).name}: {version}")
    return version
