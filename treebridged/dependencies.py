"""Shared dependency factories for FastAPI endpoints.

The working-directory file is read on every request so a directory chosen
after startup is picked up without a restart.
"""

from pathlib import Path

from treebridge_library.config import load_config
from treebridge_library.storage import read_working_dir
from treebridge_library.tree import TreeBrowsingProvider


def get_provider() -> TreeBrowsingProvider:
    """Get a document-tree provider rooted at the current working directory.

    Returns:
        TreeBrowsingProvider instance
    """
    config = load_config()
    private_storage_dir = Path(config.private_storage_dir) if config.private_storage_dir else None
    return TreeBrowsingProvider(
        read_working_dir(),
        title=config.title,
        private_storage_dir=private_storage_dir,
    )
