"""MIME classification of tree entries."""

import mimetypes
from pathlib import Path

from ..models import MIME_TYPE_DIR

DEFAULT_MIME_TYPE = "application/octet-stream"

# Script and text formats the platform table does not treat as plain text
PLAIN_TEXT_EXTENSIONS = frozenset({"lua", "md", "log"})


def mime_type_for_name(name: str) -> str:
    """Classify a file name by its extension."""
    _, dot, extension = name.rpartition(".")
    if not dot:
        return DEFAULT_MIME_TYPE
    extension = extension.lower()
    if extension in PLAIN_TEXT_EXTENSIONS:
        return "text/plain"
    mime_type, _ = mimetypes.guess_type(f"file.{extension}", strict=False)
    return mime_type or DEFAULT_MIME_TYPE


def mime_type_for_path(path: Path) -> str:
    """Directories map to the directory marker, files by extension."""
    if path.is_dir():
        return MIME_TYPE_DIR
    return mime_type_for_name(path.name)


def is_image(mime_type: str) -> bool:
    return mime_type.startswith("image/")
