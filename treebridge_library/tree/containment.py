"""Document id conversion and path containment.

A document id is the absolute path of the entry it names. Every
"is X inside Y" question in the package goes through is_within so the
separator boundary is handled in one place.
"""

import os
from pathlib import Path

from ..errors import DocumentNotFoundError


def doc_id_for_path(path: Path) -> str:
    """Return the stable document id of a path."""
    return os.path.abspath(path)


def path_for_doc_id(doc_id: str) -> Path:
    """Resolve a document id back to its path.

    Raises:
        DocumentNotFoundError: If nothing exists at that path
    """
    path = Path(os.path.abspath(doc_id))
    if not os.path.lexists(path):
        raise DocumentNotFoundError(f"{path} not found")
    return path


def is_within(parent: str | os.PathLike | None, child: str | os.PathLike | None) -> bool:
    """Boundary-safe containment test.

    True when child equals parent or continues it after a separator, so
    "/a/b" is inside "/a" but not inside "/a/bc" and "/a/bc" is not inside "/a/b".
    """
    if parent is None or child is None:
        return False
    parent_str = os.fspath(parent)
    child_str = os.fspath(child)
    if parent_str == child_str:
        return True
    if not parent_str.endswith(os.sep):
        parent_str += os.sep
    return child_str.startswith(parent_str)
