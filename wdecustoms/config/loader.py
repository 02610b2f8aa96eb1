"""
Configuration loading for wdecustoms.

The tool is driven by a single YAML file (``config.yaml`` next to the
executable by default). The file is deep-merged over built-in defaults so
that only the two folder locations are mandatory:

    customisations_folder: D:\\WDE\\Customisations
    wde_installation_folder: C:\\Program Files (x86)\\GCTI\\Workspace Desktop Edition\\InteractionWorkspace
    redundant_files:
      - .config
      - "_old"
    log:
      folder: log
      verbose: debug

Merge Behavior
--------------
Same "last wins" rules as the rest of the tool:
  - **Dicts**: Recursively merged (keys from the file override defaults)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution
---------------
Relative paths are resolved against the CONFIG FILE location, so a config
file can live next to the tool and use ``log``/``history``/``registry``
sub-folders without absolute paths. Resolved fields:
  - customisations_folder, wde_installation_folder
  - log.folder, history.folder, registry.snapshot_folder
  - deployment_manager.path

Derived Values
--------------
  - deployment_manager.path defaults to
    ``<wde_installation_folder>/../InteractionWorkspaceDeploymentManager/InteractionWorkspaceDeploymentManager.exe``

Functions
---------
load_config : function
    Load, merge and validate the configuration (main public API).

Private Helpers
---------------
_load_yaml_file : Load YAML with error handling
_deep_merge_dicts : Recursive dict merging
_resolve_path : Resolve one relative path field
_log_level : Map the configured level name to a logging level

Error Handling
--------------
- ConfigError: missing file, YAML parse errors, empty files, non-mapping
  top level, missing or invalid fields
- All errors are chained with "from err" for better debugging
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

import yaml

from wdecustoms.exceptions import ConfigError

DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_REGISTRY_PATH = r"Software\Genesys\DeploymentManager"
DM_FOLDER_NAME = "InteractionWorkspaceDeploymentManager"
DM_EXECUTABLE_NAME = "InteractionWorkspaceDeploymentManager.exe"

_DEFAULTS: dict[str, Any] = {
    "customisations_folder": None,
    "wde_installation_folder": None,
    "redundant_files": [],
    "log": {
        "folder": "log",
        "name": "WDECustoms.log",
        "verbose": "info",
        "max_size_mb": 10,
        "max_backups": 5,
    },
    "history": {
        "folder": "history",
        "prefix": "WDECustoms_History",
        "keep": 15,
    },
    "registry": {
        "path": DEFAULT_REGISTRY_PATH,
        "source": "live",
        "snapshot_folder": "registry",
        "snapshot_prefix": "WDECustoms_Registry",
        "keep_snapshots": 5,
    },
    "deployment_manager": {
        "path": None,
        "launch": True,
        "wait": True,
        "timeout": None,
    },
    "manifest": {
        "legacy_field_offset": True,
    },
}

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_REGISTRY_SOURCES = ("live", "snapshot")

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class LogConfig:
    """Log file settings.

    Attributes:
        folder: Directory for the log file.
        name: Log file name.
        level: Minimum logging level written to the file.
        max_bytes: Rotation threshold in bytes.
        max_backups: Number of rotated files to keep.
    """

    folder: Path
    name: str
    level: int
    max_bytes: int
    max_backups: int

    @property
    def file(self) -> Path:
        return self.folder / self.name


@dataclass(frozen=True)
class HistoryConfig:
    folder: Path
    prefix: str
    keep: int


@dataclass(frozen=True)
class RegistryConfig:
    """Registry and snapshot settings.

    Attributes:
        path: Key path under HKEY_CURRENT_USER.
        source: Where the previous manifest is read from ("live" or "snapshot").
        snapshot_folder: Directory for timestamped registry snapshots.
        snapshot_prefix: File name prefix of snapshot files.
        keep_snapshots: Number of snapshots kept after a successful run.
    """

    path: str
    source: str
    snapshot_folder: Path
    snapshot_prefix: str
    keep_snapshots: int


@dataclass(frozen=True)
class DeploymentManagerConfig:
    path: Path
    launch: bool
    wait: bool
    timeout: float | None


@dataclass(frozen=True)
class AppConfig:
    """Effective configuration for one run.

    Attributes:
        config_path: The YAML file the configuration was loaded from.
        customisations_folder: Root folder holding one subfolder per customisation.
        wde_installation_folder: Target folder the winning files are copied into.
        redundant_files: Operator exclusion patterns (regular expressions).
        log: Log file settings.
        history: History report settings.
        registry: Registry and snapshot settings.
        deployment_manager: Deployment manager launch settings.
        legacy_field_offset: Write the historical shifted attribute layout
            in the CustomFiles manifest.
    """

    config_path: Path
    customisations_folder: Path
    wde_installation_folder: Path
    redundant_files: tuple[str, ...]
    log: LogConfig
    history: HistoryConfig
    registry: RegistryConfig
    deployment_manager: DeploymentManagerConfig
    legacy_field_offset: bool


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Raises:
        ConfigError: When file does not exist, invalid YAML (parse error), or empty files.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


# -------------------------------
# Field helpers
# -------------------------------


def _resolve_path(raw: Any, base_dir: Path, field_name: str) -> Path:
    """Resolve a path field against the config file directory."""
    if not isinstance(raw, (str, Path)) or not str(raw).strip():
        raise ConfigError(f"'{field_name}' must be a non-empty path")
    p = Path(str(raw).strip())
    if not p.is_absolute():
        p = base_dir / p
    return p.resolve()


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    value = cfg.get(name)
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'{field_name}' must be a positive integer, got {value!r}")
    return value


def _log_level(value: Any) -> int:
    """Map the configured level name to a logging level.

    Unknown names fall back to ERROR, the quietest useful level.
    """
    return _LOG_LEVELS.get(str(value).strip().lower(), logging.ERROR)


def _redundant_patterns(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError("'redundant_files' must be a list of patterns")
    patterns: list[str] = []
    for item in value:
        if not isinstance(item, (str, int, float)):
            raise ConfigError(f"invalid redundant file pattern: {item!r}")
        patterns.append(str(item))
    return tuple(patterns)


# -------------------------------
# Public API
# -------------------------------


def load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the effective configuration.

    Steps
      1) Read the YAML file.
      2) Deep-merge it over the built-in defaults.
      3) Validate required fields and types.
      4) Resolve relative paths against the config file directory.
      5) Derive the deployment manager path if not configured.

    Returns
      A frozen AppConfig ready for the scan/deploy workflows.

    Raises
      ConfigError on a missing file, YAML parse errors, a non-mapping top
      level, or missing/invalid fields.
    """
    from wdecustoms.logging import get_global_logger

    logger = get_global_logger()

    config_path = config_path.resolve()
    base_dir = config_path.parent

    logger.verbose("CONFIG", f"Loading config: {config_path}")

    raw = _load_yaml_file(config_path)
    if not isinstance(raw, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {config_path}")

    merged = _deep_merge_dicts(_DEFAULTS, raw)
    logger.debug("CONFIG", f"Top-level keys: {', '.join(merged.keys())}")

    for required in ("customisations_folder", "wde_installation_folder"):
        if not merged.get(required):
            raise ConfigError(f"missing required field '{required}' in {config_path}")

    customisations = _resolve_path(
        merged["customisations_folder"], base_dir, "customisations_folder"
    )
    wde_folder = _resolve_path(
        merged["wde_installation_folder"], base_dir, "wde_installation_folder"
    )

    log_cfg = _section(merged, "log")
    log = LogConfig(
        folder=_resolve_path(log_cfg.get("folder"), base_dir, "log.folder"),
        name=str(log_cfg.get("name") or _DEFAULTS["log"]["name"]),
        level=_log_level(log_cfg.get("verbose")),
        max_bytes=_positive_int(log_cfg.get("max_size_mb"), "log.max_size_mb")
        * 1024
        * 1024,
        max_backups=_positive_int(log_cfg.get("max_backups"), "log.max_backups"),
    )

    history_cfg = _section(merged, "history")
    history = HistoryConfig(
        folder=_resolve_path(history_cfg.get("folder"), base_dir, "history.folder"),
        prefix=str(history_cfg.get("prefix") or _DEFAULTS["history"]["prefix"]),
        keep=_positive_int(history_cfg.get("keep"), "history.keep"),
    )

    registry_cfg = _section(merged, "registry")
    source = str(registry_cfg.get("source", "live")).strip().lower()
    if source not in _REGISTRY_SOURCES:
        raise ConfigError(
            f"'registry.source' must be one of {', '.join(_REGISTRY_SOURCES)}, got {source!r}"
        )
    registry = RegistryConfig(
        path=str(registry_cfg.get("path") or DEFAULT_REGISTRY_PATH),
        source=source,
        snapshot_folder=_resolve_path(
            registry_cfg.get("snapshot_folder"), base_dir, "registry.snapshot_folder"
        ),
        snapshot_prefix=str(
            registry_cfg.get("snapshot_prefix") or _DEFAULTS["registry"]["snapshot_prefix"]
        ),
        keep_snapshots=_positive_int(
            registry_cfg.get("keep_snapshots"), "registry.keep_snapshots"
        ),
    )

    dm_cfg = _section(merged, "deployment_manager")
    if dm_cfg.get("path"):
        dm_path = _resolve_path(dm_cfg["path"], base_dir, "deployment_manager.path")
    else:
        dm_path = (wde_folder.parent / DM_FOLDER_NAME / DM_EXECUTABLE_NAME).resolve()
    timeout = dm_cfg.get("timeout")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0
    ):
        raise ConfigError(f"'deployment_manager.timeout' must be a positive number, got {timeout!r}")
    deployment_manager = DeploymentManagerConfig(
        path=dm_path,
        launch=bool(dm_cfg.get("launch", True)),
        wait=bool(dm_cfg.get("wait", True)),
        timeout=float(timeout) if timeout is not None else None,
    )

    manifest_cfg = _section(merged, "manifest")

    config = AppConfig(
        config_path=config_path,
        customisations_folder=customisations,
        wde_installation_folder=wde_folder,
        redundant_files=_redundant_patterns(merged.get("redundant_files")),
        log=log,
        history=history,
        registry=registry,
        deployment_manager=deployment_manager,
        legacy_field_offset=bool(manifest_cfg.get("legacy_field_offset", True)),
    )

    logger.verbose("CONFIG", f"Customisations folder: {config.customisations_folder}")
    logger.verbose("CONFIG", f"WDE installation folder: {config.wde_installation_folder}")
    logger.verbose(
        "CONFIG", f"Redundant file patterns: {len(config.redundant_files)} configured"
    )

    return config
