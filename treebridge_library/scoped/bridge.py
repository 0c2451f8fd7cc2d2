"""POSIX-like file operations over a granted scoped content tree.

Callers pass application paths prefixed with the scoped root; every
operation normalizes the path, runs against the content tree and reports
the result as a plain value. Nothing raises past this module: failures
become -1, False, an empty list or ExistenceState.NONE, with a log line.

Existence is re-queried on every call. Check-then-create sequences are not
atomic; an external change between the two steps makes the second step
fail or succeed on its own terms.
"""

import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path

from ..errors import DocumentNotFoundError
from ..models import MIME_TYPE_DIR
from ..models import CopyResult
from ..models import ExistenceState
from ..modes import is_read_only
from ..modes import parse_mode
from .addressing import decode_component
from .addressing import normalize_path
from .addressing import split_address
from .content_tree import ContentTree

logger = logging.getLogger(__name__)

DEFAULT_FILE_MIME_TYPE = "application/octet-stream"
COPY_BUFFER_SIZE = 64 * 1024
FAILED_DESCRIPTOR = -1


class ScopedStorageBridge:
    """Translates path-based requests into content-tree operations."""

    def __init__(self, tree: ContentTree, scoped_root: str) -> None:
        """Initialize bridge.

        Args:
            tree: Content tree holding the granted subtree
            scoped_root: Address returned by the folder grant, fixed for the bridge's lifetime
        """
        self._tree = tree
        self._scoped_root = scoped_root

    @property
    def scoped_root(self) -> str:
        return self._scoped_root

    def normalize(self, path: str) -> str:
        return normalize_path(path, self._scoped_root)

    # --- Existence ---

    def classify(self, address: str) -> ExistenceState:
        """Classify an already-normalized address."""
        try:
            row = self._tree.query(address)
        except Exception as e:
            logger.error(f"Failed query for {address}: {e}")
            return ExistenceState.NONE

        if row is None:
            return ExistenceState.NONE
        if row.mime_type == MIME_TYPE_DIR:
            return ExistenceState.FOLDER
        return ExistenceState.FILE

    def exists(self, path: str) -> ExistenceState:
        return self.classify(self.normalize(path))

    # --- Creation ---

    def create_directory(self, path: str) -> bool:
        """Ensure a directory exists at path, creating only the last component."""
        try:
            address = self.normalize(path)
            handlers: dict[ExistenceState, Callable[[str], bool]] = {
                ExistenceState.FOLDER: lambda _: True,
                ExistenceState.FILE: self._refuse_file_as_directory,
                ExistenceState.NONE: self._create_missing_directory,
            }
            return handlers[self.classify(address)](address)
        except Exception as e:
            logger.error(f"create_directory exception for {path}: {e}")
            return False

    def create_file(self, parent_address: str, leaf_name: str) -> bool:
        """Create an empty document named by the encoded leaf_name under parent_address."""
        try:
            created = self._tree.create_document(parent_address, DEFAULT_FILE_MIME_TYPE, decode_component(leaf_name))
        except Exception as e:
            logger.error(f"create_file exception under {parent_address}: {e}")
            return False

        if created is None:
            logger.error(f"create_file: no document created under {parent_address}")
            return False
        return True

    # --- Descriptors ---

    def open_file(self, path: str, mode: str) -> int:
        """Open path and hand over a raw descriptor.

        Missing files are created for write-capable modes; read-only opens of
        a missing file fail without side effects. Every mode except "r" counts
        as write-capable, so "rw" creates a missing file too. A bare
        content-resolver open treats "rw" like "r" and fails on a missing file;
        callers that relied on that must check exists() first.

        Returns:
            Descriptor owned by the caller, or -1 on failure
        """
        try:
            parse_mode(mode)
        except ValueError:
            logger.debug(f"open_file: invalid mode {mode!r} for {path}")
            return FAILED_DESCRIPTOR

        try:
            address = self.normalize(path)
            prepare: dict[ExistenceState, Callable[[str, str], bool]] = {
                ExistenceState.FOLDER: self._refuse_open_folder,
                ExistenceState.FILE: lambda _address, _mode: True,
                ExistenceState.NONE: self._create_for_open,
            }
            if not prepare[self.classify(address)](address, mode):
                return FAILED_DESCRIPTOR
            return self._tree.open_descriptor(address, mode)
        except (ValueError, DocumentNotFoundError) as e:
            logger.debug(f"open_file: file not found: {path}: {e}")
            return FAILED_DESCRIPTOR
        except Exception as e:
            logger.error(f"Unexpected open_file exception for {path}: {e}")
            return FAILED_DESCRIPTOR

    # --- Listing and removal ---

    def list_folder(self, path: str) -> list[str]:
        """List names under path; directories carry a trailing '/'."""
        try:
            rows = self._tree.query_children(self.normalize(path))
        except (ValueError, DocumentNotFoundError) as e:
            logger.debug(f"list_folder: folder not found: {path}: {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected list_folder exception for {path}: {e}")
            return []

        return [row.display_name + "/" if row.mime_type == MIME_TYPE_DIR else row.display_name for row in rows]

    def remove(self, path: str) -> bool:
        try:
            return self._tree.delete_document(self.normalize(path))
        except Exception as e:
            logger.error(f"remove exception for {path}: {e}")
            return False

    # --- Copy ---

    def copy_file(self, source: Path, dest_parent_path: str) -> CopyResult:
        """Stream source into dest_parent_path under the source's own name.

        An existing destination is left untouched.
        """
        source = Path(source)
        address = self.normalize(f"{dest_parent_path}/{source.name}")
        if self.classify(address) is not ExistenceState.NONE:
            logger.debug(f"copy_file: {source.name} already present in {dest_parent_path}, skipping")
            return CopyResult.SKIPPED_EXISTING

        try:
            with open(source, "rb") as src:
                parent, leaf = split_address(address)
                if not self.create_file(parent, leaf):
                    return CopyResult.FAILED
                with os.fdopen(self._tree.open_descriptor(address, "w"), "wb") as dst:
                    shutil.copyfileobj(src, dst, COPY_BUFFER_SIZE)
        except Exception as e:
            logger.error(f"Unexpected copy_file exception for {source}: {e}")
            return CopyResult.FAILED

        logger.info(f"Copied {source} into {dest_parent_path}")
        return CopyResult.COPIED

    def copy_into(self, source: Path, dest_parent_path: str) -> bool:
        """Copy, reporting a skipped existing destination as success."""
        return self.copy_file(source, dest_parent_path) is not CopyResult.FAILED

    # --- Access ---

    def has_access(self) -> bool:
        """Check whether the grant behind the scoped root is still valid."""
        try:
            self._tree.query_children(self.normalize(self._scoped_root))
        except PermissionError as e:
            logger.debug(f"Scoped root no longer accessible: {e}")
            return False
        except Exception as e:
            logger.error(f"Unknown exception checking scoped root access: {e}")
            return False
        return True

    # --- State handlers ---

    def _refuse_file_as_directory(self, address: str) -> bool:
        logger.error(f"create_directory: a file already exists at {address}")
        return False

    def _create_missing_directory(self, address: str) -> bool:
        parent, leaf = split_address(address)
        created = self._tree.create_document(parent, MIME_TYPE_DIR, decode_component(leaf))
        if created is None:
            logger.error(f"create_directory: no directory created under {parent}")
            return False
        return True

    def _refuse_open_folder(self, address: str, mode: str) -> bool:
        logger.debug(f"open_file: {address} is a folder")
        return False

    def _create_for_open(self, address: str, mode: str) -> bool:
        # "rw" is write-capable here and creates the file
        if is_read_only(mode):
            return False
        parent, leaf = split_address(address)
        return self.create_file(parent, leaf)
