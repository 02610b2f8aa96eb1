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

"""Logging interface for wdecustoms.

Library code never prints directly. It asks for the global logger and
reports through four channels:

- step: numbered progress of the deploy workflow, always shown
- warning: a failure that does not abort the run (history report, DM exit code)
- verbose: per-stage details, shown with ``--verbose``
- debug: backend and manifest details, shown with ``--debug``

A deployment runs unattended on an agent workstation, so the CLI wraps the
console logger in a FileLogger that keeps every message, whatever the
console verbosity, in a rotating log file next to the tool.

Example:
    Console only:
        ```python
        from wdecustoms.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    From a stage module:
        ```python
        from wdecustoms.logging import get_global_logger

        logger = get_global_logger()
        logger.step(1, 7, "Scanning customisation folders...")
        logger.verbose("SCAN", "3 folder(s), 41 file(s) collected")
        logger.debug("VERSION", "win32 version API unavailable, reading bytes")
        ```

Note:
    Until the CLI installs a logger the global one is a SilentLogger, so
    calling the workflows from another program prints nothing.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Protocol


class Logger(Protocol):
    """What the scan, merge and deploy stages need from a logger."""

    def step(self, step: int, total: int, message: str) -> None:
        """Report workflow progress as ``[step/total] message``."""
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Stage detail; ``prefix`` names the stage ("SCAN", "MERGE", ...)."""
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Low-level detail such as version backends or the full manifest."""
        ...

    def warning(self, prefix: str, message: str) -> None:
        """A problem the run survives."""
        ...


class DefaultLogger:
    """Console logger for the CLI.

    Args:
        verbose: Show verbose messages.
        debug: Show debug messages too (implies verbose).
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        print(f"[{prefix}] WARNING: {message}")


class SilentLogger:
    """Discards everything. Default global logger and test logger."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


class FileLogger:
    """Logger that tees messages into a rotating log file.

    Console output is delegated to a wrapped logger (usually DefaultLogger).
    The file receives every message at or above ``level`` regardless of the
    console verbosity, so unattended runs always leave a full trail.

    Attributes:
        log_file: Path of the active log file.
    """

    _FORMAT = "%(asctime)s %(levelname)-7s %(message)s"
    _DATEFMT = "%Y.%m.%d %H:%M:%S"

    def __init__(
        self,
        log_file: Path,
        console: Logger | None = None,
        level: int = logging.DEBUG,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        self.log_file = log_file
        self._console: Logger = console if console is not None else SilentLogger()

        log_file.parent.mkdir(parents=True, exist_ok=True)
        self._handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        self._handler.setFormatter(logging.Formatter(self._FORMAT, self._DATEFMT))

        # One private logger per file; never propagate to the root logger.
        self._logger = logging.getLogger(f"wdecustoms.file.{id(self)}")
        self._logger.propagate = False
        self._logger.setLevel(level)
        self._logger.addHandler(self._handler)

    def step(self, step: int, total: int, message: str) -> None:
        self._console.step(step, total, message)
        self._logger.info("[%d/%d] %s", step, total, message)

    def verbose(self, prefix: str, message: str) -> None:
        self._console.verbose(prefix, message)
        self._logger.info("[%s] %s", prefix, message)

    def debug(self, prefix: str, message: str) -> None:
        self._console.debug(prefix, message)
        self._logger.debug("[%s] %s", prefix, message)

    def warning(self, prefix: str, message: str) -> None:
        self._console.warning(prefix, message)
        self._logger.warning("[%s] %s", prefix, message)

    def close(self) -> None:
        """Flush and detach the file handler."""
        self._logger.removeHandler(self._handler)
        self._handler.close()


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Console logger for the given CLI flags."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Logger used by every stage module (SilentLogger until replaced)."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Replace the global logger.

    The CLI installs a console logger first and then, once the config is
    loaded, a FileLogger wrapping it. Tests reset it to a SilentLogger.
    """
    global _global_logger
    _global_logger = logger
