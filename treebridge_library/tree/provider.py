"""Document-tree provider over a plain absolute-path subtree.

Entries are identified by their absolute path. Every query stats the
filesystem fresh; nothing is cached between calls.

Contract:
- Inputs: Document ids (absolute paths under the base directory) supplied by external callers
- Outputs: TreeEntry / RootInfo / DocumentPath views, raw descriptors
- Errors: DocumentNotFoundError or OperationFailedError, never a bare OSError
"""

import logging
import os
import shutil
from collections import deque
from pathlib import Path

from ..errors import DocumentNotFoundError
from ..errors import OperationFailedError
from ..models import MIME_TYPE_DIR
from ..models import DocumentPath
from ..models import EntryFlags
from ..models import RootFlags
from ..models import RootInfo
from ..models import ThumbnailHandle
from ..models import TreeEntry
from ..modes import parse_mode
from .containment import doc_id_for_path
from .containment import is_within
from .containment import path_for_doc_id
from .mime import is_image
from .mime import mime_type_for_path

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 50


def _is_valid_name(display_name: str) -> bool:
    """A single path component: non-empty, not '.' or '..', no separator."""
    if not display_name or display_name in (".", ".."):
        return False
    if os.sep in display_name:
        return False
    return not (os.altsep and os.altsep in display_name)


class TreeBrowsingProvider:
    """Serves tree queries and mutations rooted at a configured base directory."""

    def __init__(
        self,
        base_dir: Path | None,
        title: str = "treebridge",
        private_storage_dir: Path | None = None,
    ) -> None:
        """Initialize provider.

        Args:
            base_dir: Root of the exposed tree, None when no working directory is chosen
            title: Title reported for the root
            private_storage_dir: Search boundary (default: base_dir)
        """
        self.base_dir = Path(os.path.abspath(base_dir)) if base_dir is not None else None
        self.title = title
        boundary = private_storage_dir if private_storage_dir is not None else self.base_dir
        self.private_storage_dir = Path(os.path.realpath(boundary)) if boundary is not None else None

    # --- Queries ---

    def query_root(self) -> RootInfo:
        """Describe the single root.

        Raises:
            DocumentNotFoundError: If no base directory is configured
        """
        if self.base_dir is None:
            raise DocumentNotFoundError("No base directory configured")

        root_id = doc_id_for_path(self.base_dir)
        try:
            available = shutil.disk_usage(self.base_dir).free
        except OSError as e:
            logger.warning(f"Could not read free space for {self.base_dir}: {e}")
            available = 0

        return RootInfo(
            root_id=root_id,
            document_id=root_id,
            title=self.title,
            flags=RootFlags(),
            available_bytes=available,
        )

    def query_entry(self, doc_id: str) -> TreeEntry:
        """Resolve a document id to its entry."""
        return self._entry_for_path(self._resolve(doc_id))

    def query_children(self, parent_id: str) -> list[TreeEntry]:
        """List the immediate children of a directory."""
        parent = self._resolve(parent_id)
        try:
            children = list(parent.iterdir())
        except NotADirectoryError as e:
            raise DocumentNotFoundError(f"{parent} is not a directory") from e
        except OSError as e:
            raise DocumentNotFoundError(f"Cannot list {parent}: {e}") from e

        entries = []
        for child in children:
            try:
                entries.append(self._entry_for_path(child))
            except DocumentNotFoundError:
                # Removed between listing and stat
                logger.debug(f"Child vanished during listing: {child}")
        return entries

    def get_document_type(self, doc_id: str) -> str:
        return mime_type_for_path(self._resolve(doc_id))

    def is_descendant(self, parent_id: str, doc_id: str) -> bool:
        """True if doc_id equals parent_id or lies below it."""
        return is_within(parent_id, doc_id)

    def find_path(self, parent_id: str | None, child_id: str) -> DocumentPath:
        """Build the chain of ids from parent_id down to child_id.

        Args:
            parent_id: Ancestor id, or None to start at the base directory
            child_id: Descendant id

        Returns:
            DocumentPath whose path starts at the parent and ends at the child.
            root_id is set only when parent_id was None.

        Raises:
            DocumentNotFoundError: If either id is missing or outside the base
                directory, or the child is not under the parent
        """
        root_id = None
        if parent_id is None:
            if self.base_dir is None:
                raise DocumentNotFoundError("No base directory configured")
            parent_id = doc_id_for_path(self.base_dir)
            root_id = parent_id

        parent = self._resolve(parent_id)
        doc = self._resolve(child_id)
        if not is_within(parent, doc):
            raise DocumentNotFoundError(f"{doc} is not found under {parent}")

        chain: list[str] = []
        current = doc
        while is_within(parent, current):
            chain.append(doc_id_for_path(current))
            if current.parent == current:
                break
            current = current.parent
        chain.reverse()

        return DocumentPath(root_id=root_id, path=chain)

    def search_entries(self, root_id: str, query: str) -> list[TreeEntry]:
        """Breadth-first name search below root_id.

        Paths whose canonical form falls outside the private storage boundary
        are pruned without descending. Matching is a case-insensitive substring
        test on file names; the walk stops after MAX_SEARCH_RESULTS matches.
        """
        start = self._resolve(root_id)
        needle = query.lower()
        results: list[TreeEntry] = []

        pending: deque[Path] = deque([start])
        while pending and len(results) < MAX_SEARCH_RESULTS:
            path = pending.popleft()
            if not self._inside_private_storage(path):
                logger.debug(f"Search pruned {path}: outside private storage")
                continue

            if path.is_dir():
                try:
                    pending.extend(path.iterdir())
                except OSError as e:
                    logger.warning(f"Search could not list {path}: {e}")
            elif needle in path.name.lower():
                try:
                    results.append(self._entry_for_path(path))
                except DocumentNotFoundError:
                    continue

        return results

    # --- Mutations ---

    def create_entry(self, parent_id: str, mime_type: str, display_name: str) -> str:
        """Create a file or directory under parent_id.

        A taken name is retried as "name (2)", "name (3)", ... until free.

        Returns:
            Document id of the created entry

        Raises:
            DocumentNotFoundError: If parent_id lies outside the base directory
            OperationFailedError: If the name is invalid or the entry could not be created
        """
        parent = self._resolve(parent_id, must_exist=False)
        if not _is_valid_name(display_name):
            raise OperationFailedError(f"Invalid display name: {display_name!r}")

        target = parent / display_name
        suffix = 2
        while os.path.lexists(target):
            target = parent / f"{display_name} ({suffix})"
            suffix += 1

        try:
            if mime_type == MIME_TYPE_DIR:
                target.mkdir()
            else:
                target.touch(exist_ok=False)
        except OSError as e:
            logger.error(f"Failed to create document {target}: {e}")
            raise OperationFailedError(f"Failed to create document with id {target}") from e

        logger.info(f"Created document: {target}")
        return doc_id_for_path(target)

    def delete_entry(self, doc_id: str) -> None:
        """Delete a file, or a directory and everything below it.

        Raises:
            DocumentNotFoundError: If the document does not exist
            OperationFailedError: If the target itself could not be removed
        """
        path = self._resolve(doc_id)
        if not self._delete_recursive(path):
            raise OperationFailedError(f"Failed to delete document with id {doc_id}")
        logger.info(f"Deleted document: {doc_id}")

    def rename_entry(self, doc_id: str, display_name: str) -> str:
        """Rename an entry within its parent directory.

        Existing entries are never overwritten.

        Returns:
            Document id of the renamed entry

        Raises:
            DocumentNotFoundError: If the source is missing, the name is taken,
                or the rename fails
        """
        path = self._resolve(doc_id)
        if not _is_valid_name(display_name):
            raise DocumentNotFoundError(f"Invalid display name: {display_name!r}")

        target = path.parent / display_name
        if os.path.lexists(target):
            raise DocumentNotFoundError(f"Cannot rename {doc_id}: {target} already exists")

        try:
            path.rename(target)
        except OSError as e:
            logger.warning(f"Rename of {doc_id} to {display_name} failed: {e}")
            raise DocumentNotFoundError(f"Failed to rename document with id {doc_id}") from e

        logger.info(f"Renamed document: {doc_id} -> {target}")
        return doc_id_for_path(target)

    # --- Descriptors ---

    def open_document(self, doc_id: str, mode: str) -> int:
        """Open a document and hand the raw descriptor to the caller.

        Raises:
            DocumentNotFoundError: If the document is missing or cannot be opened
            OperationFailedError: If the mode is invalid
        """
        path = self._resolve(doc_id)
        try:
            flags = parse_mode(mode)
        except ValueError as e:
            raise OperationFailedError(str(e)) from e

        try:
            return os.open(path, flags, 0o666)
        except OSError as e:
            raise DocumentNotFoundError(f"Cannot open {doc_id}: {e}") from e

    def open_thumbnail(self, doc_id: str, size_hint: tuple[int, int] | None = None) -> ThumbnailHandle:
        """Open an image document for thumbnail use.

        The whole file is offered; size_hint is accepted for protocol parity
        and not used for scaling.
        """
        path = self._resolve(doc_id)
        if not is_image(mime_type_for_path(path)):
            raise DocumentNotFoundError(f"{doc_id} has no thumbnail")

        fd = self.open_document(doc_id, "r")
        return ThumbnailHandle(fd=fd, start_offset=0, length=os.fstat(fd).st_size)

    # --- Internals ---

    def _resolve(self, doc_id: str, must_exist: bool = True) -> Path:
        """Validate a document id against the base directory and return its path.

        Args:
            doc_id: Document id supplied by a caller
            must_exist: Also require the path to exist

        Raises:
            DocumentNotFoundError: If no base directory is configured, the path
                escapes the base directory, or (with must_exist) nothing is there
        """
        if self.base_dir is None:
            raise DocumentNotFoundError("No base directory configured")

        candidate = Path(doc_id_for_path(doc_id))
        if not is_within(self.base_dir, candidate):
            logger.warning(f"Rejected document id outside {self.base_dir}: {doc_id}")
            raise DocumentNotFoundError(f"Path escapes root: {doc_id}")

        if must_exist:
            return path_for_doc_id(doc_id)
        return candidate

    def _entry_for_path(self, path: Path) -> TreeEntry:
        try:
            stat = path.stat()
        except OSError as e:
            raise DocumentNotFoundError(f"{path} not found") from e

        mime_type = mime_type_for_path(path)
        flags = EntryFlags()
        if path.is_dir():
            flags.dir_supports_create = os.access(path, os.W_OK)
        else:
            flags.supports_write = os.access(path, os.W_OK)
        if os.access(path.parent, os.W_OK):
            flags.supports_delete = True
            flags.supports_rename = True
        flags.supports_thumbnail = is_image(mime_type)

        return TreeEntry(
            document_id=doc_id_for_path(path),
            display_name=path.name,
            mime_type=mime_type,
            size=stat.st_size,
            last_modified=int(stat.st_mtime * 1000),
            flags=flags,
        )

    def _inside_private_storage(self, path: Path) -> bool:
        try:
            canonical = os.path.realpath(path)
        except OSError:
            return True
        return is_within(self.private_storage_dir, canonical)

    def _delete_recursive(self, path: Path) -> bool:
        """Delete children before parents, attempting every descendant.

        Returns:
            Whether path itself was removed
        """
        if path.is_dir() and not path.is_symlink():
            try:
                children = list(path.iterdir())
            except OSError as e:
                logger.warning(f"Could not list {path} for deletion: {e}")
                children = []
            for child in children:
                self._delete_recursive(child)
        return self._delete_one(path)

    def _delete_one(self, path: Path) -> bool:
        try:
            if path.is_dir() and not path.is_symlink():
                path.rmdir()
            else:
                path.unlink()
        except OSError as e:
            logger.warning(f"Failed to delete {path}: {e}")
            return False
        return True
