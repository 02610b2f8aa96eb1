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

"""Configuration loading for wdecustoms.

This module loads the YAML run configuration, deep-merges it over built-in
defaults and validates it into a frozen AppConfig.

Public API:

- load_config: Load and validate the configuration file
- AppConfig: Effective configuration for one run

Example:
    Basic usage:

        from pathlib import Path
        from wdecustoms.config import load_config

        config = load_config(Path("config.yaml"))
        print(config.customisations_folder)

"""

from .loader import (
    DEFAULT_CONFIG_FILE,
    AppConfig,
    DeploymentManagerConfig,
    HistoryConfig,
    LogConfig,
    RegistryConfig,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "AppConfig",
    "DeploymentManagerConfig",
    "HistoryConfig",
    "LogConfig",
    "RegistryConfig",
    "load_config",
]
