"""Scoped-storage bridge.

Public Interface:
    - ScopedStorageBridge: POSIX-like operations against a granted content tree
    - ContentTree: Abstract content-resolver boundary
    - LocalContentTree: Directory-backed content tree
    - normalize_path / split_address: Address helpers
"""

from .addressing import normalize_path
from .addressing import split_address
from .bridge import ScopedStorageBridge
from .content_tree import ContentTree
from .content_tree import LocalContentTree

__all__ = [
    "ScopedStorageBridge",
    "ContentTree",
    "LocalContentTree",
    "normalize_path",
    "split_address",
]
