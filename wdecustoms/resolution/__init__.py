"""
Redundancy filtering and duplicate resolution for wdecustoms.

Modules
-------
redundancy : module
    Operator and mandatory exclusion rules.
resolver : module
    Version/timestamp based choice of one file per logical identity.

Public API
----------
RedundancyFilter : class
    Compiled exclusion rules with is_redundant()/filter().
compile_redundancy_rules : function
    Compile operator patterns plus the mandatory rules.
resolve_duplicates : function
    Produce the deployable file list and a status per scanned file.
compare_files : function
    Decide which of two candidates is newer.
ResolutionResult : dataclass
    Winners plus the parallel status list.
"""

from .redundancy import (
    MANDATORY_PATTERNS,
    RedundancyFilter,
    check_redundancy,
    compile_redundancy_rules,
)
from .resolver import ResolutionResult, compare_files, resolve_duplicates

__all__ = [
    "MANDATORY_PATTERNS",
    "RedundancyFilter",
    "ResolutionResult",
    "check_redundancy",
    "compare_files",
    "compile_redundancy_rules",
    "resolve_duplicates",
]
