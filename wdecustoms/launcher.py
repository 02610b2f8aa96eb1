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

"""Launching InteractionWorkspaceDeploymentManager.exe after the registry write.

The deployment manager reads the freshly written CustomFiles value at start
up. It is run from its own folder, and by default the tool waits for it to
exit so the history report and the snapshot pruning happen after the
operator is done.
"""

from __future__ import annotations

from pathlib import Path
import subprocess

from wdecustoms.exceptions import DeployError


def launch_deployment_manager(
    exe_path: Path, *, wait: bool = True, timeout: float | None = None
) -> int | None:
    """Start the deployment manager.

    Args:
        exe_path: Path to InteractionWorkspaceDeploymentManager.exe.
        wait: Wait for the process to exit. Default is True.
        timeout: Seconds to wait before giving up (only with ``wait``).

    Returns:
        The exit code when waiting, None otherwise. A non-zero exit code is
        logged, not raised.

    Raises:
        DeployError: If the executable is missing, cannot be started, or
            does not exit within ``timeout``.
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()
    if not exe_path.is_file():
        raise DeployError(f"deployment manager not found: {exe_path}")

    cmd = [str(exe_path)]
    logger.verbose("LAUNCH", f"Running: {exe_path.name} (cwd {exe_path.parent})")

    if not wait:
        try:
            subprocess.Popen(cmd, cwd=exe_path.parent)
        except OSError as err:
            raise DeployError(f"cannot start {exe_path.name}: {err}") from err
        logger.verbose("LAUNCH", "Started without waiting")
        return None

    try:
        result = subprocess.run(cmd, cwd=exe_path.parent, timeout=timeout, check=False)
    except subprocess.TimeoutExpired as err:
        raise DeployError(f"{exe_path.name} timed out after {err.timeout}s") from err
    except OSError as err:
        raise DeployError(f"cannot start {exe_path.name}: {err}") from err

    if result.returncode != 0:
        logger.warning("LAUNCH", f"{exe_path.name} exited with code {result.returncode}")
    else:
        logger.verbose("LAUNCH", f"[OK] {exe_path.name} finished")
    return result.returncode
