"""The persisted working-directory choice.

A single text file holds one absolute path followed by a newline. It is the
only state this package writes for itself.
"""

import logging
from pathlib import Path

from .paths import get_state_dir

logger = logging.getLogger(__name__)

WORKING_DIR_FILENAME = "working_dir"


def get_working_dir_file() -> Path:
    """Get the path of the working-directory file ($TREEBRIDGE_HOME/state/working_dir)."""
    return get_state_dir() / WORKING_DIR_FILENAME


def read_working_dir(path: Path | None = None) -> Path | None:
    """Read the chosen working directory.

    Args:
        path: File to read (default: get_working_dir_file())

    Returns:
        The first line as a Path, or None if the file is missing, empty or unreadable
    """
    if path is None:
        path = get_working_dir_file()

    try:
        with open(path, encoding="utf-8") as f:
            line = f.readline().rstrip("\r\n")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Working directory file found but not read: {e}")
        return None

    if not line:
        return None
    return Path(line)


def write_working_dir(working_dir: Path, path: Path | None = None) -> Path:
    """Persist the chosen working directory.

    Args:
        working_dir: Directory to record (stored as an absolute path)
        path: File to write (default: get_working_dir_file())

    Returns:
        Path of the file written

    Raises:
        OSError: If the file cannot be written
    """
    if path is None:
        path = get_working_dir_file()

    path.write_text(f"{Path(working_dir).expanduser().resolve()}\n", encoding="utf-8")
    logger.info(f"Working directory set to {working_dir}")
    return path
