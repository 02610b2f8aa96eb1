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

"""Exception hierarchy for wdecustoms.

This module defines a custom exception hierarchy that allows callers to
distinguish between the failure modes of a deployment run:

- ConfigError: Configuration-related errors (YAML parse, missing fields)
- ScanError: Customisation folders could not be listed or walked
- NoSubdirectoriesError: The customisations root has no subfolders
- VersionUnavailableError: A file carries no version resource (non-fatal)
- ManifestKeyNotFoundError: The previous entries have no CustomFiles value
- ManifestDecodeError: The previous CustomFiles value is not a valid manifest
- RegistryError: The registry key could not be read or written
- SnapshotError: A registry snapshot file could not be read or written
- DeployError: Copying files or launching the deployment manager failed

All exceptions inherit from WDECustomsError, allowing callers to catch all
wdecustoms errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from wdecustoms.core import deploy_customisations
        from wdecustoms.exceptions import NoSubdirectoriesError, ScanError

        try:
            result = deploy_customisations(config)
        except NoSubdirectoriesError as e:
            print(f"Nothing to deploy: {e}")
        except ScanError as e:
            print(f"Scan failed: {e}")
        ```

    Catching all wdecustoms errors:
        ```python
        from wdecustoms.exceptions import WDECustomsError

        try:
            result = deploy_customisations(config)
        except WDECustomsError as e:
            print(f"Error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "WDECustomsError",
    "ConfigError",
    "ScanError",
    "NoSubdirectoriesError",
    "VersionUnavailableError",
    "ManifestError",
    "ManifestKeyNotFoundError",
    "ManifestDecodeError",
    "RegistryError",
    "SnapshotError",
    "DeployError",
]


class WDECustomsError(Exception):
    """Base exception for all wdecustoms errors.

    All wdecustoms-specific exceptions inherit from this class, allowing
    callers to catch all of them with a single except clause if needed.
    """

    pass


class ConfigError(WDECustomsError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing or invalid configuration fields
    - Invalid redundant file patterns (bad regular expressions)
    - Missing configuration files
    """

    pass


class ScanError(WDECustomsError):
    """Raised when the customisation folders cannot be scanned.

    Any filesystem error while listing the customisations root or walking
    one of its subfolders aborts the whole scan; no partial results are
    returned.
    """

    pass


class NoSubdirectoriesError(ScanError):
    """Raised when the customisations root contains no subfolders.

    Distinct from a generic ScanError so the caller can print a more
    specific diagnostic.
    """

    pass


class VersionUnavailableError(WDECustomsError):
    """Raised when a file carries no embedded file version.

    This is never fatal: the scanner substitutes the zero version and
    continues.
    """

    pass


class ManifestError(WDECustomsError):
    """Base class for CustomFiles manifest errors."""

    pass


class ManifestKeyNotFoundError(ManifestError):
    """Raised when the previous registry entries have no CustomFiles value.

    This is recoverable: the caller builds a fresh manifest from the scanned
    files with default attribute values instead of merging.
    """

    pass


class ManifestDecodeError(ManifestError):
    """Raised when the previous CustomFiles value cannot be decoded.

    Propagated as fatal so that operator edits are never silently dropped
    by treating malformed data as absent.
    """

    pass


class RegistryError(WDECustomsError):
    """Raised when the deployment manager registry key cannot be accessed."""

    pass


class SnapshotError(WDECustomsError):
    """Raised when a registry snapshot file cannot be read or written."""

    pass


class DeployError(WDECustomsError):
    """Raised for deployment-related errors.

    This exception is raised when there are problems with:

    - Copying customisation files into the WDE installation folder
    - Deleting old snapshot or history files
    - Launching the deployment manager executable
    """

    pass
