"""treebridge library layer.

Path-based file access over two addressing schemes: a plain absolute-path
tree served by the document-tree provider, and a permission-scoped content
tree reached through the scoped-storage bridge.

Public Interface:
    Modules:
    - tree: Document-tree provider
    - scoped: Scoped-storage bridge and content trees
    - config: Configuration loading
    - storage: Storage locations and the working-directory file
    - models: Shared data structures
    - errors: Error taxonomy
"""

from .errors import AccessDeniedError
from .errors import DocumentNotFoundError
from .errors import OperationFailedError
from .errors import TreeBridgeError
from .models import CopyResult
from .models import ExistenceState
from .models import TreeEntry

__all__ = [
    "AccessDeniedError",
    "DocumentNotFoundError",
    "OperationFailedError",
    "TreeBridgeError",
    "CopyResult",
    "ExistenceState",
    "TreeEntry",
]
