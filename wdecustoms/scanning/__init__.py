"""
Customisation folder scanning and file version probing for wdecustoms.

Modules
-------
scanner : module
    List customisation subfolders and walk them into CustomizationFile records.
version : module
    Read the embedded four-part FileVersion of PE files.

Public API
----------
scan_customisations : function
    Scan every subfolder of the customisations root.
list_customisation_folders : function
    List the immediate subfolders (NoSubdirectoriesError if none).
collect_customisation_files : function
    Walk one subfolder into candidates.
read_file_version : function
    Read a file version (VersionUnavailableError if absent).
probe_file_version : function
    Read a file version, zero if absent.
"""

from .scanner import (
    collect_customisation_files,
    list_customisation_folders,
    scan_customisations,
)
from .version import probe_file_version, read_file_version

__all__ = [
    "collect_customisation_files",
    "list_customisation_folders",
    "probe_file_version",
    "read_file_version",
    "scan_customisations",
]
