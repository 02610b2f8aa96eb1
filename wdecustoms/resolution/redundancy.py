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

"""Redundant file filtering.

A file is redundant when its name matches any exclusion rule; redundant
files are never copied or listed in the manifest, whatever their version.

Rule construction:

- Every operator pattern (``redundant_files`` in config.yaml) is compiled
  case-insensitively. A pattern starting with a literal "." is anchored at
  the end of the name, so ".config" only matches the extension.
- Three mandatory rules are always appended: ``readme`` anywhere in the
  name, and the ``.pdb`` and ``.md`` extensions.

Rules are compiled once (mandatory rules at import, operator rules when the
filter is built) and each check returns its own result; there is no state
shared between candidates.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from wdecustoms.exceptions import ConfigError
from wdecustoms.models import CustomizationFile, FileStatus

MANDATORY_PATTERNS: tuple[str, ...] = ("readme", r"\.pdb$", r"\.md$")

_MANDATORY_RULES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in MANDATORY_PATTERNS
)


def _operator_pattern(pattern: str) -> str:
    if pattern.startswith(".") and not pattern.endswith("$"):
        return pattern + "$"
    return pattern


def compile_redundancy_rules(patterns: Iterable[str] = ()) -> list[re.Pattern[str]]:
    """Compile operator patterns followed by the mandatory rules.

    Args:
        patterns: Operator exclusion patterns, in configured order. Empty
            strings are ignored.

    Returns:
        Compiled rules: operator rules first, then the mandatory ones.

    Raises:
        ConfigError: If an operator pattern is not a valid regular expression.

    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    rules: list[re.Pattern[str]] = []
    for raw in patterns:
        if not raw:
            continue
        pattern = _operator_pattern(raw)
        try:
            rules.append(re.compile(pattern, re.IGNORECASE))
        except re.error as err:
            raise ConfigError(f"invalid redundant file pattern {raw!r}: {err}") from err
        logger.debug("FILTER", f"redundant pattern            - '(?i){pattern}'")

    for rule in _MANDATORY_RULES:
        logger.debug("FILTER", f"redundant pattern (mandatory) - '(?i){rule.pattern}'")
    rules.extend(_MANDATORY_RULES)
    return rules


def check_redundancy(
    file: CustomizationFile, rules: Sequence[re.Pattern[str]]
) -> re.Pattern[str] | None:
    """Return the first rule matching the file name, or None."""
    for rule in rules:
        if rule.search(file.file_name):
            return rule
    return None


class RedundancyFilter:
    """Compiled exclusion rules for one run.

    Attributes:
        rules: Operator rules followed by the mandatory rules.

    Example:
        ```python
        rf = RedundancyFilter([".config"])
        rf.is_redundant(CustomizationFile("README.txt"))  # True
        rf.is_redundant(CustomizationFile("App.exe.config"))  # True
        rf.is_redundant(CustomizationFile("App.config.bak"))  # False
        ```
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.rules = compile_redundancy_rules(patterns)

    def match(self, file: CustomizationFile) -> re.Pattern[str] | None:
        return check_redundancy(file, self.rules)

    def is_redundant(self, file: CustomizationFile) -> bool:
        return self.match(file) is not None

    def filter(
        self, files: Sequence[CustomizationFile]
    ) -> tuple[list[CustomizationFile], list[FileStatus | None]]:
        """Split files into kept files and a parallel status list.

        Returns:
            Tuple of (non-redundant files in order, statuses parallel to
            ``files`` with REDUNDANT for excluded files and None otherwise).
        """
        kept: list[CustomizationFile] = []
        statuses: list[FileStatus | None] = []
        for file in files:
            if self.is_redundant(file):
                statuses.append(FileStatus.REDUNDANT)
            else:
                statuses.append(None)
                kept.append(file)
        return kept, statuses
