"""API models for treebridged."""

from .documents import DocumentCreateRequest
from .documents import DocumentIdResponse
from .documents import DocumentRenameRequest
from .documents import DocumentTypeResponse
from .documents import IsChildResponse

__all__ = [
    "DocumentCreateRequest",
    "DocumentIdResponse",
    "DocumentRenameRequest",
    "DocumentTypeResponse",
    "IsChildResponse",
]
