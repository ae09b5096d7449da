"""Comment and audit log endpoints."""

import logging

from fastapi import APIRouter, Depends

from ...core.audit_log import AuditLog
from ...core.comment_manager import CommentManager
from ...models.activity import AuditLogResponse, Comment, CommentCreate, CommentListResponse
from ...models.principal import Principal
from ...models.requests import MessageResponse
from ..dependencies import get_paging, get_principal
from .documents import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/documents/{document_id}", tags=["activity"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
comment_manager: CommentManager = None
audit_log: AuditLog = None


def set_managers(comment_mgr: CommentManager, audit: AuditLog = None):
    """Set the manager instances (called from main.py)."""
    globals()['comment_manager'] = comment_mgr
    if audit:
        globals()['audit_log'] = audit


@router.get("/comments", response_model=CommentListResponse, summary="List Comments", responses=ERROR_RESPONSES)
async def list_comments(
    document_id: int, paging: tuple = Depends(get_paging), principal: Principal = Depends(get_principal)
):
    """List comments newest first. Requires view."""
    page, page_size = paging
    result = await comment_manager.list_comments(document_id, principal, page=page, page_size=page_size)
    return CommentListResponse(document_id=document_id, comments=result.items, pagination=result.pagination)


@router.post("/comments", response_model=Comment, status_code=201, summary="Add Comment", responses=ERROR_RESPONSES)
async def add_comment(document_id: int, body: CommentCreate, principal: Principal = Depends(get_principal)):
    """Comment on a document. Requires view."""
    return await comment_manager.add_comment(document_id, principal, body.body)


@router.delete(
    "/comments/{comment_id}", response_model=MessageResponse, summary="Delete Comment", responses=ERROR_RESPONSES
)
async def delete_comment(document_id: int, comment_id: int, principal: Principal = Depends(get_principal)):
    """Delete a comment. Its author may; anyone else needs manage."""
    await comment_manager.delete_comment(document_id, comment_id, principal)
    return MessageResponse(message="Comment deleted", details={"document_id": document_id, "comment_id": comment_id})


@router.get(
    "/logs",
    response_model=AuditLogResponse,
    summary="Audit Log",
    description="""
Read the document's audit trail, newest first.

Entries are append-only: every mutating action writes one in the same
transaction as the change it describes.

**Authorization**: manage
    """,
    responses=ERROR_RESPONSES,
)
async def list_audit_entries(
    document_id: int, paging: tuple = Depends(get_paging), principal: Principal = Depends(get_principal)
):
    """List audit entries."""
    page, page_size = paging
    result = await audit_log.list_entries(document_id, principal, page=page, page_size=page_size)
    return AuditLogResponse(document_id=document_id, entries=result.items, pagination=result.pagination)
