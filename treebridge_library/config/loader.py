"""Reads treebridge.yaml and merges it with TREEBRIDGE_* environment variables.

Contract:
- Inputs: An optional YAML path, the process environment
- Outputs: BridgeSettings
- Side Effects: Writes the commented default file on first use
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..storage.paths import get_config_dir
from .settings import BridgeSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "TREEBRIDGE_"

DEFAULT_CONFIG = """# treebridge configuration

# Server settings
host: "127.0.0.1"
port: 8430
log_level: "info"
workers: 1

# Title reported for the document-tree root
title: "treebridge"

# Search never descends outside this directory (default: the working directory)
# private_storage_dir: "~/.local/share/treebridge"

# Scoped storage: document ids look like "<storage_volume>:<path below storage_volume_path>"
storage_volume: "primary"
storage_volume_path: "~"
content_authority: "treebridge.documents"

# Address produced by `treebridge grant`; can also be set with TREEBRIDGE_SCOPED_ROOT
# scoped_root: "content://treebridge.documents/tree/primary%3AGame/document/primary%3AGame"
"""


def get_config_path() -> Path:
    """Location of treebridge.yaml inside the config directory."""
    return get_config_dir() / "treebridge.yaml"


def create_default_config() -> None:
    """Write DEFAULT_CONFIG unless a config file is already there."""
    config_path = get_config_path()
    if config_path.exists():
        logger.debug(f"Keeping existing config file {config_path}")
        return

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Wrote default config to {config_path}")


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Top-level mapping of a YAML file; anything unreadable yields {}."""
    if not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            values = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}, falling back to defaults: {e}")
        return {}

    if values is None:
        return {}
    if not isinstance(values, dict):
        logger.warning(f"Ignoring config {config_path}: top level is not a mapping")
        return {}
    return values


def _without_env_overrides(values: dict[str, Any]) -> dict[str, Any]:
    # BridgeSettings reads the environment itself; init kwargs would beat it
    return {key: value for key, value in values.items() if f"{ENV_PREFIX}{str(key).upper()}" not in os.environ}


def load_config(config_path: Path | None = None) -> BridgeSettings:
    """Build settings from defaults, then the YAML file, then the environment.

    Args:
        config_path: YAML file to read. When omitted, treebridge.yaml in the
            config directory is used and created if missing.

    Returns:
        Validated settings
    """
    if config_path is None:
        config_path = get_config_path()
        create_default_config()

    settings = BridgeSettings(**_without_env_overrides(_read_yaml(config_path)))
    logger.debug(f"Settings from {config_path}: host={settings.host} port={settings.port} level={settings.log_level}")
    return settings
