"""Shared data structures for the tree provider and the scoped bridge."""

from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

MIME_TYPE_DIR = "vnd.android.document/directory"
"""MIME type marking a directory entry in both addressing schemes."""

ALL_MIME_TYPES = "*/*"


class ExistenceState(str, Enum):
    """Classification of a scoped address, re-queried on every call."""

    NONE = "none"
    FILE = "file"
    FOLDER = "folder"


class CopyResult(str, Enum):
    """Outcome of copying a file into the scoped tree.

    COPIED and SKIPPED_EXISTING are both reported as success to callers;
    the distinction exists so the collision path can be observed.
    """

    COPIED = "copied"
    SKIPPED_EXISTING = "skipped_existing"
    FAILED = "failed"


class EntryFlags(BaseModel):
    """Capabilities advertised for a single tree entry."""

    supports_write: bool = False
    supports_delete: bool = False
    supports_rename: bool = False
    supports_thumbnail: bool = False
    dir_supports_create: bool = False


class TreeEntry(BaseModel):
    """View of one filesystem path, computed at query time."""

    document_id: str = Field(..., description="Canonical absolute path of the entry")
    display_name: str = Field(..., description="Final path component")
    mime_type: str = Field(..., description="Directory marker or MIME type derived from the extension")
    size: int = Field(..., description="Size in bytes")
    last_modified: int = Field(..., description="Modification time in milliseconds since the epoch")
    flags: EntryFlags = Field(default_factory=EntryFlags)


class RootFlags(BaseModel):
    """Capabilities advertised for the provider root."""

    supports_create: bool = True
    supports_search: bool = True
    supports_is_child: bool = True


class RootInfo(BaseModel):
    """The single root record served by the tree provider."""

    root_id: str = Field(..., description="Canonical path of the base directory")
    document_id: str = Field(..., description="Document id of the root directory")
    title: str = Field(..., description="Human readable root title")
    mime_types: str = Field(default=ALL_MIME_TYPES, description="MIME types the root can hold")
    flags: RootFlags = Field(default_factory=RootFlags)
    available_bytes: int = Field(..., description="Free space on the base directory's filesystem")


class DocumentPath(BaseModel):
    """Ordered chain of document ids from an ancestor down to a descendant.

    root_id is only populated when the lookup started from the provider root
    because the caller gave no parent.
    """

    root_id: str | None = None
    path: list[str] = Field(default_factory=list)


class ThumbnailHandle(BaseModel):
    """Read-only descriptor plus the byte range holding the thumbnail."""

    model_config = ConfigDict(frozen=True)

    fd: int
    start_offset: int = 0
    length: int


class ContentRow(BaseModel):
    """One row returned by a content-tree query."""

    document_id: str
    display_name: str
    mime_type: str
    size: int = 0
    last_modified: int = 0
