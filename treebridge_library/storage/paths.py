"""Path resolution for treebridge storage locations.

This module provides path resolution based on the TREEBRIDGE_HOME environment
variable, with per-directory overrides.

Contract:
- Inputs: Environment variables (TREEBRIDGE_HOME, TREEBRIDGE_*_DIR)
- Outputs: Resolved Path objects
- Side Effects: Creates directories if they don't exist
"""

import os
from pathlib import Path


def get_home_dir() -> Path:
    """Get TREEBRIDGE_HOME from environment.

    Returns:
        Path to root directory (default: .treebridge)
    """
    root = os.environ.get("TREEBRIDGE_HOME", ".treebridge")
    return Path(root).expanduser().resolve()


def _get_dir(name: str, default: Path) -> Path:
    directory = default

    env_override: str | None = os.environ.get(f"TREEBRIDGE_{name.upper()}_DIR")
    if env_override is not None:
        directory = Path(env_override).expanduser().resolve()

    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($TREEBRIDGE_HOME/config)
    """
    return _get_dir("config", get_home_dir() / "config")


def get_state_dir() -> Path:
    """Get state directory holding the working-directory file.

    Returns:
        Path to state directory ($TREEBRIDGE_HOME/state)

    Environment Variables:
        TREEBRIDGE_STATE_DIR: Override state directory location
    """
    return _get_dir("state", get_home_dir() / "state")


def get_log_dir() -> Path:
    """Get log directory.

    Returns:
        Path to log directory ($TREEBRIDGE_HOME/logs)
    """
    return _get_dir("log", get_home_dir() / "logs")
