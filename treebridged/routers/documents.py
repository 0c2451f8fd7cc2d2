"""Document-tree API endpoints.

Other processes browse and edit the working directory through these
endpoints. Document ids are canonical absolute paths.
"""

import logging
import os
from collections.abc import Iterator
from typing import BinaryIO

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request
from fastapi import Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from treebridge_library.errors import DocumentNotFoundError
from treebridge_library.errors import OperationFailedError
from treebridge_library.models import DocumentPath
from treebridge_library.models import RootInfo
from treebridge_library.models import TreeEntry
from treebridge_library.tree import TreeBrowsingProvider

from ..dependencies import get_provider
from ..models import DocumentCreateRequest
from ..models import DocumentIdResponse
from ..models import DocumentRenameRequest
from ..models import DocumentTypeResponse
from ..models import IsChildResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/documents", tags=["documents"])

STREAM_CHUNK_SIZE = 64 * 1024


def _not_found(e: DocumentNotFoundError) -> HTTPException:
    logger.debug(f"Document not found: {e}")
    return HTTPException(status_code=404, detail=str(e))


def _read_chunks(f: BinaryIO, length: int | None = None) -> Iterator[bytes]:
    try:
        remaining = length
        while remaining is None or remaining > 0:
            size = STREAM_CHUNK_SIZE if remaining is None else min(STREAM_CHUNK_SIZE, remaining)
            chunk = f.read(size)
            if not chunk:
                break
            if remaining is not None:
                remaining -= len(chunk)
            yield chunk
    finally:
        f.close()


def _stream_descriptor(fd: int, media_type: str, offset: int = 0, length: int | None = None) -> StreamingResponse:
    """Stream a descriptor's bytes, owning the descriptor from here on.

    The file is closed when the body iterator finishes or is closed early,
    and again by a background task after the response, which covers a body
    that was never started.
    """
    f = os.fdopen(fd, "rb")
    if offset:
        f.seek(offset)
    return StreamingResponse(_read_chunks(f, length), media_type=media_type, background=BackgroundTask(f.close))


@router.get("/roots", response_model=list[RootInfo])
def list_roots(provider: TreeBrowsingProvider = Depends(get_provider)) -> list[RootInfo]:
    """List the single root, or nothing when no working directory is chosen."""
    try:
        return [provider.query_root()]
    except DocumentNotFoundError:
        logger.info("No working directory configured; reporting no roots")
        return []


@router.get("/document", response_model=TreeEntry)
def get_document(
    id: str = Query(..., description="Document id"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> TreeEntry:
    """Get one document.

    Raises:
        404: Document does not exist
    """
    try:
        return provider.query_entry(id)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e


@router.get("/children", response_model=list[TreeEntry])
def list_children(
    parent_id: str = Query(..., description="Document id of a directory"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> list[TreeEntry]:
    """List the immediate children of a directory.

    Raises:
        404: Parent does not exist or is not a directory
    """
    try:
        return provider.query_children(parent_id)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e


@router.get("/content")
def read_document(
    id: str = Query(..., description="Document id"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> StreamingResponse:
    """Stream a document's bytes.

    Raises:
        404: Document does not exist or cannot be opened
    """
    try:
        mime_type = provider.get_document_type(id)
        fd = provider.open_document(id, "r")
    except DocumentNotFoundError as e:
        raise _not_found(e) from e

    return _stream_descriptor(fd, mime_type)


@router.put("/content", status_code=204)
async def write_document(
    request: Request,
    id: str = Query(..., description="Document id"),
    mode: str = Query(default="w", description="Write mode: w, wt, wa, rw or rwt"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> Response:
    """Write the request body into an existing document.

    The body is received on the event loop; opening and writing run in the
    threadpool.

    Raises:
        400: Mode is read-only or invalid
        404: Document does not exist
    """
    if mode == "r":
        raise HTTPException(status_code=400, detail="Mode 'r' cannot be used for writing")

    try:
        fd = await run_in_threadpool(provider.open_document, id, mode)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e
    except OperationFailedError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    f = os.fdopen(fd, "wb")
    try:
        async for chunk in request.stream():
            if chunk:
                await run_in_threadpool(f.write, chunk)
    finally:
        await run_in_threadpool(f.close)

    logger.info(f"Wrote document: {id}")
    return Response(status_code=204)


@router.get("/thumbnail")
def get_thumbnail(
    id: str = Query(..., description="Document id of an image"),
    width: int | None = Query(default=None, ge=1, description="Requested width hint"),
    height: int | None = Query(default=None, ge=1, description="Requested height hint"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> StreamingResponse:
    """Stream the bytes backing an image's thumbnail.

    Raises:
        404: Document does not exist or is not an image
    """
    size_hint = (width, height) if width and height else None
    try:
        mime_type = provider.get_document_type(id)
        handle = provider.open_thumbnail(id, size_hint)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e

    return _stream_descriptor(handle.fd, mime_type, offset=handle.start_offset, length=handle.length)


@router.post("/create", response_model=DocumentIdResponse, status_code=201)
def create_document(
    request: DocumentCreateRequest,
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> DocumentIdResponse:
    """Create a file or directory.

    Raises:
        404: Parent lies outside the working directory
        500: Creation failed
    """
    try:
        document_id = provider.create_entry(request.parent_id, request.mime_type, request.display_name)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e
    except OperationFailedError as e:
        logger.error(f"Failed to create {request.display_name} under {request.parent_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return DocumentIdResponse(document_id=document_id)


@router.delete("/document", status_code=204)
def delete_document(
    id: str = Query(..., description="Document id"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> Response:
    """Delete a document; directories are removed recursively.

    Raises:
        404: Document does not exist
        500: Deletion failed
    """
    try:
        provider.delete_entry(id)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e
    except OperationFailedError as e:
        logger.error(f"Failed to delete {id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return Response(status_code=204)


@router.post("/rename", response_model=DocumentIdResponse)
def rename_document(
    request: DocumentRenameRequest,
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> DocumentIdResponse:
    """Rename a document within its parent.

    Raises:
        404: Document does not exist, the new name is taken, or the rename failed
    """
    try:
        document_id = provider.rename_entry(request.document_id, request.display_name)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e

    return DocumentIdResponse(document_id=document_id)


@router.get("/path", response_model=DocumentPath)
def find_path(
    child_id: str = Query(..., description="Document id to locate"),
    parent_id: str | None = Query(default=None, description="Ancestor id; defaults to the root"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> DocumentPath:
    """Get the chain of ids from an ancestor down to a document.

    Raises:
        404: Document does not exist or is not under the ancestor
    """
    try:
        return provider.find_path(parent_id, child_id)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e


@router.get("/search", response_model=list[TreeEntry])
def search_documents(
    root_id: str = Query(..., description="Document id to search below"),
    query: str = Query(..., description="Case-insensitive name fragment"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> list[TreeEntry]:
    """Search file names below root_id (at most 50 results).

    Raises:
        404: Search root does not exist
    """
    try:
        return provider.search_entries(root_id, query)
    except DocumentNotFoundError as e:
        raise _not_found(e) from e


@router.get("/is-child", response_model=IsChildResponse)
def is_child_document(
    parent_id: str = Query(..., description="Candidate ancestor id"),
    id: str = Query(..., description="Candidate descendant id"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> IsChildResponse:
    return IsChildResponse(parent_id=parent_id, document_id=id, is_child=provider.is_descendant(parent_id, id))


@router.get("/type", response_model=DocumentTypeResponse)
def get_document_type(
    id: str = Query(..., description="Document id"),
    provider: TreeBrowsingProvider = Depends(get_provider),
) -> DocumentTypeResponse:
    """Get a document's MIME type.

    Raises:
        404: Document does not exist
    """
    try:
        return DocumentTypeResponse(document_id=id, mime_type=provider.get_document_type(id))
    except DocumentNotFoundError as e:
        raise _not_found(e) from e
