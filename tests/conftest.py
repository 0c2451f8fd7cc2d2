"""
Shared pytest fixtures for the treebridge test suite.

Provides fixtures for:
- Isolated TREEBRIDGE_HOME storage
- A base directory for the document-tree provider
- A granted local content tree and its scoped root
"""

from pathlib import Path

import pytest

from treebridge_library.scoped import LocalContentTree
from treebridge_library.scoped import ScopedStorageBridge

TEST_AUTHORITY = "test.documents"


@pytest.fixture(autouse=True)
def mock_storage_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point TREEBRIDGE_HOME at a temp directory.

    Keeps config and working-directory files out of the real home and
    clears overrides that would leak in from the environment.
    """
    home = tmp_path / "treebridge_home"
    home.mkdir()
    monkeypatch.setenv("TREEBRIDGE_HOME", str(home))
    for name in ("CONFIG_DIR", "STATE_DIR", "LOG_DIR", "SCOPED_ROOT", "PORT", "PRIVATE_STORAGE_DIR"):
        monkeypatch.delenv(f"TREEBRIDGE_{name}", raising=False)
    return home


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Base directory served by the document-tree provider."""
    base = tmp_path / "working"
    base.mkdir()
    return base


@pytest.fixture
def volume_dir(tmp_path: Path) -> Path:
    """Directory backing the 'primary' storage volume."""
    volume = tmp_path / "storage"
    volume.mkdir()
    return volume


@pytest.fixture
def game_dir(volume_dir: Path) -> Path:
    """The folder the user grants access to."""
    game = volume_dir / "Game"
    game.mkdir()
    return game


@pytest.fixture
def content_tree(volume_dir: Path) -> LocalContentTree:
    """Content tree that tracks grants explicitly."""
    return LocalContentTree(TEST_AUTHORITY, {"primary": volume_dir}, granted=set())


@pytest.fixture
def scoped_root(content_tree: LocalContentTree, game_dir: Path) -> str:
    """Scoped root address produced by granting game_dir."""
    return content_tree.grant(game_dir)


@pytest.fixture
def bridge(content_tree: LocalContentTree, scoped_root: str) -> ScopedStorageBridge:
    return ScopedStorageBridge(content_tree, scoped_root)
