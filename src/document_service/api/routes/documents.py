"""Document CRUD endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.document_manager import DocumentManager
from ...models.document import (
    DocumentCreate,
    DocumentListResponse,
    DocumentMove,
    DocumentResponse,
    DocumentUpdate,
    TagsUpdate,
)
from ...models.principal import Principal
from ...models.requests import ErrorResponse, MessageResponse
from ..dependencies import get_paging, get_principal

router = APIRouter(prefix="/api/v1/documents", tags=["documents"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
doc_manager: DocumentManager = None


def set_managers(doc_mgr: DocumentManager):
    """Set the manager instances (called from main.py)."""
    globals()['doc_manager'] = doc_mgr


ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing X-User-ID header"},
    403: {"model": ErrorResponse, "description": "Caller's access level is too low"},
    404: {"model": ErrorResponse, "description": "Document not found or archived"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
}


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=201,
    summary="Create Document",
    description="""
Create a document owned by the caller, optionally with its first file version.

**Workflow**:
1. Validate title and normalize tags (trimmed, lower-cased, de-duplicated)
2. Check the caller can view the target folder, if one is given
3. Insert the document with the caller's department
4. If `file` is present, insert version 1 and point the document at it
5. Append a `document_created` audit entry

Steps 3 to 5 commit in one transaction: a document never exists with a
version row but no current-version pointer.

**Request Example**:
```json
{
  "title": "Q3 Budget",
  "folder_id": 12,
  "is_departmental": true,
  "tags": ["Budget", "q3"],
  "file": {"storage_key": "uploads/2025/q3-budget.xlsx", "size_bytes": 48213,
           "mime_type": "application/vnd.ms-excel", "original_file_name": "q3-budget.xlsx"}
}
```

**Authorization**: X-User-ID header; view on the folder
    """,
    responses=ERROR_RESPONSES,
)
async def create_document(doc_data: DocumentCreate, principal: Principal = Depends(get_principal)):
    """Create a new document."""
    detail = await doc_manager.create_document(principal, doc_data)
    return doc_manager.to_response(detail)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List Documents",
    description="""
List documents the caller can see, most recently updated first.

Filtering happens in the database through the visibility predicate: owned,
public, departmental for the caller's department, or shared through an
access rule.

**Query Parameters**:
- `status`: `active` (default) or `archived`
- `folder_id`: only documents directly in this folder
- `tag`: only documents carrying this tag
- `q`: case-insensitive substring of the title
- `page`, `page_size`: pagination (page_size capped at 100)
    """,
    responses=ERROR_RESPONSES,
)
async def list_documents(
    status: str = Query("active", description="active or archived"),
    folder_id: Optional[int] = Query(None, description="Filter by folder"),
    tag: Optional[str] = Query(None, description="Filter by tag"),
    q: Optional[str] = Query(None, description="Title search"),
    paging: tuple = Depends(get_paging),
    principal: Principal = Depends(get_principal),
):
    """List visible documents."""
    page, page_size = paging
    result = await doc_manager.list_documents(
        principal, page=page, page_size=page_size, status=status, folder_id=folder_id, tag=tag, query=q
    )
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(doc) for doc in result.items],
        pagination=result.pagination,
    )


@router.get("/{document_id}", response_model=DocumentResponse, summary="Get Document", responses=ERROR_RESPONSES)
async def get_document(
    document_id: int,
    include_archived: bool = Query(False, description="Return archived documents too"),
    principal: Principal = Depends(get_principal),
):
    """Get a document with its current version and the caller's access level."""
    detail = await doc_manager.get_document(document_id, principal, include_archived=include_archived)
    return doc_manager.to_response(detail)


@router.patch("/{document_id}", response_model=DocumentResponse, summary="Update Document", responses=ERROR_RESPONSES)
async def update_document(
    document_id: int, updates: DocumentUpdate, principal: Principal = Depends(get_principal)
):
    """Edit title and description. Requires edit."""
    detail = await doc_manager.update_document(document_id, principal, updates)
    return doc_manager.to_response(detail)


@router.put("/{document_id}/tags", response_model=MessageResponse, summary="Replace Tags", responses=ERROR_RESPONSES)
async def set_tags(document_id: int, body: TagsUpdate, principal: Principal = Depends(get_principal)):
    """Replace the document's tags. Requires edit."""
    tags = await doc_manager.set_tags(document_id, principal, body.tags)
    return MessageResponse(message="Tags updated", details={"document_id": document_id, "tags": tags})


@router.post("/{document_id}/move", response_model=DocumentResponse, summary="Move Document", responses=ERROR_RESPONSES)
async def move_document(document_id: int, body: DocumentMove, principal: Principal = Depends(get_principal)):
    """Move into another folder. Requires edit on the document and view on the folder."""
    detail = await doc_manager.move_document(document_id, principal, body.folder_id)
    return doc_manager.to_response(detail)


@router.post("/{document_id}/archive", response_model=DocumentResponse, summary="Archive Document", responses=ERROR_RESPONSES)
async def archive_document(document_id: int, principal: Principal = Depends(get_principal)):
    """Archive a document. Requires manage."""
    detail = await doc_manager.archive_document(document_id, principal)
    return doc_manager.to_response(detail)


@router.post("/{document_id}/restore", response_model=DocumentResponse, summary="Restore Document", responses=ERROR_RESPONSES)
async def restore_document(document_id: int, principal: Principal = Depends(get_principal)):
    """Restore an archived document. Requires manage."""
    detail = await doc_manager.restore_document(document_id, principal)
    return doc_manager.to_response(detail)


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    summary="Delete Document",
    description="""
Permanently delete a document with its versions, access rules, tags,
comments and audit entries.

Stored objects are removed afterwards on a best-effort basis; failures are
logged and do not fail the request.

**Authorization**: owner or administrator only
    """,
    responses=ERROR_RESPONSES,
)
async def delete_document(document_id: int, principal: Principal = Depends(get_principal)):
    """Hard-delete a document."""
    storage_keys = await doc_manager.delete_document(document_id, principal)
    return MessageResponse(
        message="Document deleted",
        details={"document_id": document_id, "versions_deleted": len(storage_keys)},
    )
