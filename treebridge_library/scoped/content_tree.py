"""Content-tree boundary used by the scoped-storage bridge.

A content tree answers metadata queries and hands out descriptors for
documents named by URI-style addresses:

    content://<authority>/tree/<treeId>/document/<documentId>

Both ids are percent-encoded. A document id has the form
"<volume>:<relative/path>" and a tree id names the granted subtree in the
same form, so a child's document id is its parent's id plus "/name".
"""

import logging
import os
import shutil
from abc import ABC
from abc import abstractmethod
from pathlib import Path
from urllib.parse import urlsplit

from ..errors import AccessDeniedError
from ..errors import DocumentNotFoundError
from ..models import MIME_TYPE_DIR
from ..models import ContentRow
from ..modes import parse_mode
from ..tree.containment import is_within
from ..tree.mime import mime_type_for_path
from .addressing import decode_component
from .addressing import encode_component

logger = logging.getLogger(__name__)

CONTENT_SCHEME = "content"


class ContentTree(ABC):
    """Operations the bridge needs from the platform content resolver.

    Implementations raise AccessDeniedError (a PermissionError) for trees the
    caller holds no grant for, and may raise any other exception for
    malformed or unresolvable addresses.
    """

    @abstractmethod
    def query(self, address: str) -> ContentRow | None:
        """Return the metadata row for address, or None if nothing is there."""

    @abstractmethod
    def query_children(self, address: str) -> list[ContentRow]:
        """Return one row per child of the directory at address."""

    @abstractmethod
    def create_document(self, parent_address: str, mime_type: str, display_name: str) -> str | None:
        """Create a document under parent_address and return its address."""

    @abstractmethod
    def delete_document(self, address: str) -> bool:
        """Delete the document at address."""

    @abstractmethod
    def open_descriptor(self, address: str, mode: str) -> int:
        """Open an existing document and return a raw descriptor owned by the caller."""


class LocalContentTree(ContentTree):
    """Content tree backed by local directories.

    Each volume maps a name ("primary") to a directory. A folder grant
    produces a scoped root address for one subtree of a volume; documents
    outside granted subtrees are refused with AccessDeniedError.
    """

    def __init__(
        self,
        authority: str,
        volumes: dict[str, Path],
        granted: set[str] | None = None,
    ) -> None:
        """Initialize content tree.

        Args:
            authority: URI authority this tree answers for
            volumes: Volume name to directory mapping
            granted: Tree ids the caller may access (None grants every tree)
        """
        self.authority = authority
        self.volumes = {name: Path(os.path.realpath(path)) for name, path in volumes.items()}
        self._granted = set(granted) if granted is not None else None

    # --- Grant flow ---

    def grant(self, directory: Path) -> str:
        """Grant access to directory and return its scoped root address.

        Raises:
            ValueError: If directory is not on any volume
        """
        tree_id = self.tree_id_for_directory(directory)
        if self._granted is not None:
            self._granted.add(tree_id)
        logger.info(f"Granted tree {tree_id}")
        return self.document_address(tree_id, tree_id)

    def revoke(self, tree_id: str) -> None:
        """Withdraw a grant. A tree built with granted=None starts tracking grants."""
        if self._granted is None:
            self._granted = set()
        self._granted.discard(tree_id)
        logger.info(f"Revoked tree {tree_id}")

    def tree_id_for_directory(self, directory: Path) -> str:
        target = os.path.realpath(directory)
        for name, root in self.volumes.items():
            if is_within(root, target):
                relative = Path(target).relative_to(root).as_posix()
                return f"{name}:" if relative == "." else f"{name}:{relative}"
        raise ValueError(f"Directory is not on any volume: {directory}")

    def document_address(self, tree_id: str, document_id: str) -> str:
        return (
            f"{CONTENT_SCHEME}://{self.authority}/tree/{encode_component(tree_id)}"
            f"/document/{encode_component(document_id)}"
        )

    # --- ContentTree ---

    def query(self, address: str) -> ContentRow | None:
        _, document_id, path = self._resolve(address)
        if not os.path.lexists(path):
            return None
        return self._row(document_id, path)

    def query_children(self, address: str) -> list[ContentRow]:
        _, document_id, path = self._resolve(address)
        if not path.is_dir():
            raise DocumentNotFoundError(f"Not a directory: {document_id}")

        rows = []
        with os.scandir(path) as entries:
            for entry in entries:
                child_id = self._child_id(document_id, entry.name)
                rows.append(self._row(child_id, Path(entry.path)))
        return rows

    def create_document(self, parent_address: str, mime_type: str, display_name: str) -> str | None:
        tree_id, parent_id, parent = self._resolve(parent_address)
        if not parent.is_dir():
            logger.warning(f"Cannot create {display_name!r}: parent {parent_id} is not a directory")
            return None
        if not display_name or "/" in display_name or display_name in (".", ".."):
            logger.warning(f"Refusing to create document with name {display_name!r}")
            return None

        name = self._unique_name(parent, display_name, mime_type == MIME_TYPE_DIR)
        target = parent / name
        try:
            if mime_type == MIME_TYPE_DIR:
                target.mkdir()
            else:
                target.touch(exist_ok=False)
        except OSError as e:
            logger.warning(f"Failed to create {target}: {e}")
            return None

        return self.document_address(tree_id, self._child_id(parent_id, name))

    def delete_document(self, address: str) -> bool:
        _, document_id, path = self._resolve(address)
        if not os.path.lexists(path):
            return False
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            logger.warning(f"Failed to delete {document_id}: {e}")
            return False
        return True

    def open_descriptor(self, address: str, mode: str) -> int:
        flags = parse_mode(mode)
        _, document_id, path = self._resolve(address)
        if not path.is_file():
            raise DocumentNotFoundError(f"No file for document {document_id}")
        return os.open(path, flags, 0o666)

    # --- Internals ---

    def _resolve(self, address: str) -> tuple[str, str, Path]:
        """Parse an address into (tree id, document id, local path).

        Raises:
            ValueError: If the address is malformed or names another authority
            AccessDeniedError: If the tree is not granted or the document escapes it
            DocumentNotFoundError: If the volume is unknown
        """
        parts = urlsplit(address)
        if parts.scheme != CONTENT_SCHEME or parts.netloc != self.authority:
            raise ValueError(f"Not an address of {self.authority}: {address}")

        segments = parts.path.split("/")
        if len(segments) == 3 and segments[1] == "tree":
            tree_id = decode_component(segments[2])
            document_id = tree_id
        elif len(segments) == 5 and segments[1] == "tree" and segments[3] == "document":
            tree_id = decode_component(segments[2])
            document_id = decode_component(segments[4])
        else:
            raise ValueError(f"Malformed tree address: {address}")

        if self._granted is not None and tree_id not in self._granted:
            raise AccessDeniedError(f"No permission for tree {tree_id}")

        tree_path = self._path_for_id(tree_id)
        path = self._path_for_id(document_id)
        if not is_within(tree_path, path):
            raise AccessDeniedError(f"Document {document_id} is outside tree {tree_id}")
        return tree_id, document_id, path

    def _path_for_id(self, document_id: str) -> Path:
        volume, sep, relative = document_id.partition(":")
        if not sep or volume not in self.volumes:
            raise DocumentNotFoundError(f"Unknown volume in document id: {document_id}")
        parts = [part for part in relative.split("/") if part]
        if any(part in (".", "..") for part in parts):
            raise ValueError(f"Document id cannot contain '.' or '..': {document_id}")
        return self.volumes[volume].joinpath(*parts)

    @staticmethod
    def _child_id(parent_id: str, name: str) -> str:
        if parent_id.endswith((":", "/")):
            return parent_id + name
        return f"{parent_id}/{name}"

    @staticmethod
    def _row(document_id: str, path: Path) -> ContentRow:
        try:
            stat = path.stat()
            size, modified = stat.st_size, int(stat.st_mtime * 1000)
        except OSError:
            size, modified = 0, 0
        return ContentRow(
            document_id=document_id,
            display_name=path.name,
            mime_type=mime_type_for_path(path),
            size=size,
            last_modified=modified,
        )

    @staticmethod
    def _unique_name(parent: Path, display_name: str, is_dir: bool) -> str:
        """Pick "name", then "name (1)", "name (2)", ... keeping a file extension last."""
        if not os.path.lexists(parent / display_name):
            return display_name
        stem, suffix = (display_name, "") if is_dir else os.path.splitext(display_name)
        counter = 1
        while os.path.lexists(parent / f"{stem} ({counter}){suffix}"):
            counter += 1
        return f"{stem} ({counter}){suffix}"
