"""Error taxonomy shared by the tree provider and the scoped bridge.

Provider operations raise these; bridge operations convert them into
sentinel values (-1, False, empty lists) at their boundary.
"""


class TreeBridgeError(Exception):
    """Base class for treebridge errors."""

    pass


class DocumentNotFoundError(TreeBridgeError, FileNotFoundError):
    """Raised when a document does not exist or lies outside a permitted subtree."""

    pass


class OperationFailedError(TreeBridgeError, OSError):
    """Raised when a create, delete, rename or copy could not complete."""

    pass


class AccessDeniedError(TreeBridgeError, PermissionError):
    """Raised by a content tree when the requested tree was never granted or was revoked."""

    pass
