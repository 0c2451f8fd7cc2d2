"""Storage module for treebridge_library.

Public Interface:
    - get_home_dir: Get TREEBRIDGE_HOME
    - get_config_dir: Get config directory
    - get_state_dir: Get state directory
    - get_log_dir: Get log directory
    - get_working_dir_file: Get the working-directory file path
    - read_working_dir: Read the chosen working directory
    - write_working_dir: Persist the chosen working directory
"""

from .paths import get_config_dir
from .paths import get_home_dir
from .paths import get_log_dir
from .paths import get_state_dir
from .working_dir import get_working_dir_file
from .working_dir import read_working_dir
from .working_dir import write_working_dir

__all__ = [
    "get_home_dir",
    "get_config_dir",
    "get_state_dir",
    "get_log_dir",
    "get_working_dir_file",
    "read_working_dir",
    "write_working_dir",
]
