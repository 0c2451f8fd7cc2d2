"""Models for document-tree API operations."""

from pydantic import BaseModel
from pydantic import Field


class DocumentCreateRequest(BaseModel):
    """Request to create a document under a parent directory."""

    parent_id: str = Field(..., description="Document id of the parent directory")
    mime_type: str = Field(..., description="MIME type; the directory marker creates a directory")
    display_name: str = Field(..., min_length=1, description="Requested name; a numeric suffix is added on collision")


class DocumentRenameRequest(BaseModel):
    """Request to rename a document within its parent."""

    document_id: str = Field(..., description="Document id to rename")
    display_name: str = Field(..., min_length=1, description="New name")


class DocumentIdResponse(BaseModel):
    """Response carrying the id of a created or renamed document."""

    document_id: str = Field(..., description="Document id (canonical absolute path)")


class DocumentTypeResponse(BaseModel):
    document_id: str
    mime_type: str


class IsChildResponse(BaseModel):
    """Response for a descendant check."""

    parent_id: str
    document_id: str
    is_child: bool
