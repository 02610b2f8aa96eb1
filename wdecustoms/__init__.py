"""
WDE Customs

A Python-based CLI tool that deploys Workspace Desktop Edition (WDE)
customisation files and keeps the Interaction Workspace Deployment Manager
configuration in step with them.

WDE Customs provides:
  - Scanning of per-customer customisation folders
  - File version probing of DLL/EXE resources
  - Redundant file exclusion by configurable patterns
  - One authoritative copy per logical file (newest version, then newest
    modification time)
  - CustomFiles manifest merging that keeps operator-edited attributes
  - Registry snapshots and a history report of every run

Quick Start
-----------
Preview what would be deployed:

    $ wdecustoms scan --config config.yaml

Deploy and start the deployment manager:

    $ wdecustoms deploy --config config.yaml

For full CLI documentation:

    $ wdecustoms --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration functions.
config : package
    YAML configuration loading and merging.
scanning : package
    Customisation folder scanning and file version probing.
resolution : package
    Redundancy rules and duplicate resolution.
manifest : package
    CustomFiles manifest codec and merger.
registry : package
    Registry access and snapshots.
io : package
    File copy/delete operations.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from wdecustoms.core import scan_customisations, deploy_customisations
    from wdecustoms.config import load_config
    from wdecustoms.manifest import encode_manifest, decode_manifest, merge_manifest
    from wdecustoms.resolution import resolve_duplicates, compile_redundancy_rules

For more details, see the individual module docstrings.
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"
__description__ = "WDE Customs - Workspace Desktop Edition customisation deployment"

# Re-export commonly used functions for convenience
from wdecustoms.config import load_config
from wdecustoms.core import deploy_customisations, scan_customisations
from wdecustoms.manifest import decode_manifest, encode_manifest, merge_manifest
from wdecustoms.resolution import compile_redundancy_rules, resolve_duplicates

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "compile_redundancy_rules",
    "decode_manifest",
    "deploy_customisations",
    "encode_manifest",
    "load_config",
    "merge_manifest",
    "resolve_duplicates",
    "scan_customisations",
]
