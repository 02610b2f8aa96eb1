"""
File system side effects for wdecustoms.

Public API
----------
FileOperations : protocol
    copy/delete capability used by the deploy workflow.
LocalFileOperations : class
    Real file system implementation.
RecordingFileOperations : class
    Records operations without touching the disk (tests, dry runs).
copy_customisation_files : function
    Copy resolved files into the installation folder.
"""

from .files import (
    FileOperations,
    LocalFileOperations,
    RecordingFileOperations,
    copy_customisation_files,
    target_path,
)

__all__ = [
    "FileOperations",
    "LocalFileOperations",
    "RecordingFileOperations",
    "copy_customisation_files",
    "target_path",
]
