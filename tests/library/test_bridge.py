"""Unit tests for ScopedStorageBridge."""

import logging
import os
from pathlib import Path

import pytest

from treebridge_library.errors import AccessDeniedError
from treebridge_library.models import MIME_TYPE_DIR
from treebridge_library.models import ContentRow
from treebridge_library.models import CopyResult
from treebridge_library.models import ExistenceState
from treebridge_library.scoped import ContentTree
from treebridge_library.scoped import LocalContentTree
from treebridge_library.scoped import ScopedStorageBridge
from treebridge_library.scoped.bridge import COPY_BUFFER_SIZE


class ExplodingContentTree(ContentTree):
    """Content tree whose every call raises the given exception."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    def query(self, address: str) -> ContentRow | None:
        raise self.error

    def query_children(self, address: str) -> list[ContentRow]:
        raise self.error

    def create_document(self, parent_address: str, mime_type: str, display_name: str) -> str | None:
        raise self.error

    def delete_document(self, address: str) -> bool:
        raise self.error

    def open_descriptor(self, address: str, mode: str) -> int:
        raise self.error


@pytest.mark.unit
class TestClassify:
    """Test existence classification."""

    def test_missing_is_none(self, bridge: ScopedStorageBridge, scoped_root: str) -> None:
        assert bridge.exists(scoped_root + "/missing.txt") is ExistenceState.NONE

    def test_directory_is_folder(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "decks").mkdir()

        assert bridge.exists(scoped_root + "/decks") is ExistenceState.FOLDER
        assert bridge.classify(scoped_root) is ExistenceState.FOLDER

    def test_file_is_file(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "a.txt").touch()

        assert bridge.exists(scoped_root + "/a.txt") is ExistenceState.FILE

    def test_query_failure_is_none(self, scoped_root: str) -> None:
        bridge = ScopedStorageBridge(ExplodingContentTree(RuntimeError("boom")), scoped_root)

        assert bridge.classify(scoped_root) is ExistenceState.NONE


@pytest.mark.unit
class TestCreateDirectory:
    """Test directory creation on demand."""

    def test_creates_missing_directory(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        assert bridge.create_directory(scoped_root + "/decks")
        assert (game_dir / "decks").is_dir()

    def test_existing_directory_is_success(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "decks").mkdir()

        assert bridge.create_directory(scoped_root + "/decks")
        assert sorted(os.listdir(game_dir)) == ["decks"]

    def test_trailing_separator(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        assert bridge.create_directory(scoped_root + "/decks/")
        assert (game_dir / "decks").is_dir()

    def test_existing_file_fails(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "decks").touch()

        assert not bridge.create_directory(scoped_root + "/decks")
        assert (game_dir / "decks").is_file()

    def test_missing_parent_fails(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        assert not bridge.create_directory(scoped_root + "/a/b")
        assert not (game_dir / "a").exists()

    def test_unsplittable_address_fails(self, volume_dir: Path) -> None:
        tree = LocalContentTree("test.documents", {"primary": volume_dir})
        bridge = ScopedStorageBridge(tree, "content://test.documents/tree/primary%3AMissing")

        assert not bridge.create_directory("content://test.documents/tree/primary%3AMissing")

    def test_create_file_decodes_leaf(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        assert bridge.create_file(scoped_root, "my%20deck.ydk")
        assert (game_dir / "my deck.ydk").is_file()

    def test_create_file_missing_parent(self, bridge: ScopedStorageBridge, scoped_root: str) -> None:
        assert not bridge.create_file(scoped_root + "%2Fmissing", "a.txt")


@pytest.mark.unit
class TestOpenFile:
    """Test descriptor handoff and creation on open."""

    def test_read_existing(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "a.txt").write_bytes(b"hello")

        fd = bridge.open_file(scoped_root + "/a.txt", "r")
        assert fd >= 0
        try:
            assert os.read(fd, 100) == b"hello"
        finally:
            os.close(fd)

    def test_read_missing_fails_without_side_effect(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path
    ) -> None:
        assert bridge.open_file(scoped_root + "/missing.txt", "r") == -1
        assert not (game_dir / "missing.txt").exists()

    @pytest.mark.parametrize("mode", ["w", "wa", "rw", "rwt"])
    def test_write_modes_create_missing_file(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, mode: str
    ) -> None:
        fd = bridge.open_file(scoped_root + "/new.txt", mode)
        assert fd >= 0
        try:
            os.write(fd, b"written")
        finally:
            os.close(fd)

        assert (game_dir / "new.txt").read_bytes() == b"written"

    def test_read_write_mode_creates_missing_file(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path
    ) -> None:
        """Test "rw" is write-capable: the missing file is created and readable through the descriptor."""
        assert bridge.exists(scoped_root + "/deck.ydk") is ExistenceState.NONE

        fd = bridge.open_file(scoped_root + "/deck.ydk", "rw")
        assert fd >= 0
        try:
            os.write(fd, b"#main")
            os.lseek(fd, 0, os.SEEK_SET)
            assert os.read(fd, 10) == b"#main"
        finally:
            os.close(fd)

        assert bridge.exists(scoped_root + "/deck.ydk") is ExistenceState.FILE

    def test_write_truncates_existing(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "a.txt").write_bytes(b"a much longer original")

        fd = bridge.open_file(scoped_root + "/a.txt", "w")
        try:
            os.write(fd, b"short")
        finally:
            os.close(fd)

        assert (game_dir / "a.txt").read_bytes() == b"short"

    def test_write_in_missing_directory_fails(self, bridge: ScopedStorageBridge, scoped_root: str) -> None:
        assert bridge.open_file(scoped_root + "/missing/new.txt", "w") == -1

    def test_folder_fails(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "decks").mkdir()

        assert bridge.open_file(scoped_root + "/decks", "r") == -1
        assert bridge.open_file(scoped_root + "/decks", "w") == -1

    @pytest.mark.parametrize("mode", ["", "x", "append"])
    def test_invalid_mode_fails_without_side_effect(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, mode: str
    ) -> None:
        assert bridge.open_file(scoped_root + "/new.txt", mode) == -1
        assert not (game_dir / "new.txt").exists()

    def test_descriptor_outlives_bridge_call(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        """Test the returned descriptor is still open and owned by the caller."""
        (game_dir / "a.txt").write_bytes(b"x")

        fd = bridge.open_file(scoped_root + "/a.txt", "r")
        try:
            os.fstat(fd)
        finally:
            os.close(fd)


@pytest.mark.unit
class TestListAndRemove:
    """Test folder listing and removal."""

    def test_list_marks_directories(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "decks").mkdir()
        (game_dir / "a.txt").touch()

        assert sorted(bridge.list_folder(scoped_root)) == ["a.txt", "decks/"]

    def test_list_subdirectory(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "decks").mkdir()
        (game_dir / "decks" / "main.ydk").touch()

        assert bridge.list_folder(scoped_root + "/decks") == ["main.ydk"]

    def test_list_missing_is_empty(self, bridge: ScopedStorageBridge, scoped_root: str) -> None:
        assert bridge.list_folder(scoped_root + "/missing") == []

    def test_list_file_is_empty(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "a.txt").touch()

        assert bridge.list_folder(scoped_root + "/a.txt") == []

    def test_list_failure_is_empty(self, scoped_root: str) -> None:
        bridge = ScopedStorageBridge(ExplodingContentTree(RuntimeError("boom")), scoped_root)

        assert bridge.list_folder(scoped_root) == []

    def test_remove_file(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path) -> None:
        (game_dir / "a.txt").touch()

        assert bridge.remove(scoped_root + "/a.txt")
        assert bridge.exists(scoped_root + "/a.txt") is ExistenceState.NONE

    def test_remove_missing(self, bridge: ScopedStorageBridge, scoped_root: str) -> None:
        assert not bridge.remove(scoped_root + "/missing.txt")

    def test_remove_failure_is_false(self, scoped_root: str) -> None:
        bridge = ScopedStorageBridge(ExplodingContentTree(RuntimeError("boom")), scoped_root)

        assert not bridge.remove(scoped_root + "/a.txt")


@pytest.mark.unit
class TestCopy:
    """Test streamed copy into the scoped tree."""

    @pytest.fixture
    def source(self, tmp_path: Path) -> Path:
        source_dir = tmp_path / "assets"
        source_dir.mkdir()
        source = source_dir / "a.txt"
        source.write_bytes(b"fresh contents")
        return source

    def test_copy_into_directory(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, source: Path
    ) -> None:
        (game_dir / "decks").mkdir()

        assert bridge.copy_file(source, scoped_root + "/decks") is CopyResult.COPIED
        assert (game_dir / "decks" / "a.txt").read_bytes() == b"fresh contents"

    def test_copy_into_root(self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, source: Path) -> None:
        assert bridge.copy_into(source, scoped_root)
        assert (game_dir / "a.txt").read_bytes() == b"fresh contents"

    def test_existing_destination_is_skipped(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, source: Path
    ) -> None:
        """Test an existing file is left byte-for-byte unchanged and reported as success."""
        (game_dir / "decks").mkdir()
        (game_dir / "decks" / "a.txt").write_bytes(b"user edits")

        assert bridge.copy_file(source, scoped_root + "/decks") is CopyResult.SKIPPED_EXISTING
        assert bridge.copy_into(source, scoped_root + "/decks")
        assert (game_dir / "decks" / "a.txt").read_bytes() == b"user edits"
        assert sorted(os.listdir(game_dir / "decks")) == ["a.txt"]

    def test_large_file_is_streamed_intact(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, tmp_path: Path
    ) -> None:
        payload = os.urandom(COPY_BUFFER_SIZE * 3 + 17)
        source = tmp_path / "big.bin"
        source.write_bytes(payload)

        assert bridge.copy_file(source, scoped_root) is CopyResult.COPIED
        assert (game_dir / "big.bin").read_bytes() == payload

    def test_missing_destination_parent_fails(
        self, bridge: ScopedStorageBridge, scoped_root: str, source: Path
    ) -> None:
        assert bridge.copy_file(source, scoped_root + "/missing") is CopyResult.FAILED
        assert not bridge.copy_into(source, scoped_root + "/missing")

    def test_missing_source_fails_without_creating_destination(
        self, bridge: ScopedStorageBridge, scoped_root: str, game_dir: Path, tmp_path: Path
    ) -> None:
        assert bridge.copy_file(tmp_path / "nope.txt", scoped_root) is CopyResult.FAILED
        assert not (game_dir / "nope.txt").exists()


@pytest.mark.unit
class TestHasAccess:
    """Test grant probing."""

    def test_granted(self, bridge: ScopedStorageBridge) -> None:
        assert bridge.has_access()

    def test_revoked(self, bridge: ScopedStorageBridge, content_tree: LocalContentTree) -> None:
        content_tree.revoke("primary:Game")

        assert not bridge.has_access()

    def test_permission_denied_is_not_logged_as_error(
        self, scoped_root: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        bridge = ScopedStorageBridge(ExplodingContentTree(AccessDeniedError("revoked")), scoped_root)

        with caplog.at_level(logging.DEBUG, logger="treebridge_library.scoped.bridge"):
            assert not bridge.has_access()

        assert not [record for record in caplog.records if record.levelno >= logging.ERROR]

    def test_other_failure_is_logged_as_error(self, scoped_root: str, caplog: pytest.LogCaptureFixture) -> None:
        bridge = ScopedStorageBridge(ExplodingContentTree(RuntimeError("boom")), scoped_root)

        with caplog.at_level(logging.DEBUG, logger="treebridge_library.scoped.bridge"):
            assert not bridge.has_access()

        assert any(record.levelno == logging.ERROR and "boom" in record.getMessage() for record in caplog.records)


@pytest.mark.unit
class TestCheckThenAct:
    """Test the non-atomic classify-then-create sequence."""

    def test_entry_appearing_after_classify_is_not_overwritten(
        self, content_tree: LocalContentTree, scoped_root: str, game_dir: Path
    ) -> None:
        """Test a file created between classify and create survives; the create lands beside it."""

        class RacingTree(LocalContentTree):
            def query(self, address: str) -> ContentRow | None:
                row = super().query(address)
                if address.endswith("%2Fnew.txt") and not (game_dir / "new.txt").exists():
                    (game_dir / "new.txt").write_bytes(b"external")
                return row

        racing = RacingTree(content_tree.authority, {"primary": game_dir.parent})
        bridge = ScopedStorageBridge(racing, scoped_root)

        fd = bridge.open_file(scoped_root + "/new.txt", "w")
        assert fd >= 0
        try:
            os.write(fd, b"ours")
        finally:
            os.close(fd)

        # The platform picked a fresh name for the created document; the
        # descriptor was opened on the original address.
        assert (game_dir / "new (1).txt").exists()
        assert (game_dir / "new.txt").read_bytes() == b"ours"

    def test_folder_marker_row_classifies_as_folder(self, scoped_root: str) -> None:
        class FolderTree(ExplodingContentTree):
            def query(self, address: str) -> ContentRow | None:
                return ContentRow(document_id="primary:Game", display_name="Game", mime_type=MIME_TYPE_DIR)

        bridge = ScopedStorageBridge(FolderTree(RuntimeError()), scoped_root)

        assert bridge.classify(scoped_root) is ExistenceState.FOLDER
