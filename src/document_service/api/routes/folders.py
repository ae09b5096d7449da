"""Folder tree endpoints."""

import logging

from fastapi import APIRouter, Depends

from ...core.folder_manager import FolderCascade, FolderManager
from ...models.folder import Folder, FolderCreate, FolderListResponse, FolderMove, FolderPathResponse
from ...models.principal import Principal
from ...models.requests import MessageResponse
from ..dependencies import get_paging, get_principal
from .documents import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/folders", tags=["folders"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
folder_manager: FolderManager = None


def set_managers(folder_mgr: FolderManager):
    """Set the manager instances (called from main.py)."""
    globals()['folder_manager'] = folder_mgr


def _cascade_response(message: str, folder_id: int, cascade: FolderCascade) -> MessageResponse:
    return MessageResponse(
        message=message,
        details={
            "folder_id": folder_id,
            "folders": len(cascade.folder_ids),
            "documents": len(cascade.document_ids),
        },
    )


@router.post(
    "",
    response_model=Folder,
    status_code=201,
    summary="Create Folder",
    description="""
Create a folder owned by the caller.

Names are trimmed and lower-cased. `public` and the caller's own department
name are reserved. The caller may not have two folders with the same name
under the same parent (`409 conflict`).

**Authorization**: manage on the parent folder, if one is given
    """,
    responses=ERROR_RESPONSES,
)
async def create_folder(folder_data: FolderCreate, principal: Principal = Depends(get_principal)):
    """Create a folder."""
    return await folder_manager.create_folder(principal, folder_data)


@router.get("", response_model=FolderListResponse, summary="List Root Folders", responses=ERROR_RESPONSES)
async def list_root_folders(paging: tuple = Depends(get_paging), principal: Principal = Depends(get_principal)):
    """List visible root folders."""
    page, page_size = paging
    result = await folder_manager.list_children(principal, None, page=page, page_size=page_size)
    return FolderListResponse(parent_id=None, folders=result.items, pagination=result.pagination)


@router.get("/{folder_id}", response_model=Folder, summary="Get Folder", responses=ERROR_RESPONSES)
async def get_folder(folder_id: int, principal: Principal = Depends(get_principal)):
    """Get a folder. Requires view."""
    return await folder_manager.get_folder(folder_id, principal)


@router.get(
    "/{folder_id}/children",
    response_model=FolderListResponse,
    summary="List Child Folders",
    description="""
List active child folders.

The parent's owner and administrators see every child; everyone else sees
only public children, departmental children of their own department, and
their own folders.
    """,
    responses=ERROR_RESPONSES,
)
async def list_children(
    folder_id: int, paging: tuple = Depends(get_paging), principal: Principal = Depends(get_principal)
):
    """List child folders."""
    page, page_size = paging
    result = await folder_manager.list_children(principal, folder_id, page=page, page_size=page_size)
    return FolderListResponse(parent_id=folder_id, folders=result.items, pagination=result.pagination)


@router.get("/{folder_id}/path", response_model=FolderPathResponse, summary="Folder Path", responses=ERROR_RESPONSES)
async def get_path(folder_id: int, principal: Principal = Depends(get_principal)):
    """Names and ids from the root down to this folder."""
    breadcrumbs = await folder_manager.get_breadcrumbs(folder_id, principal)
    return FolderPathResponse(
        folder_id=folder_id,
        path=[crumb.name for crumb in breadcrumbs],
        breadcrumbs=breadcrumbs,
    )


@router.post("/{folder_id}/move", response_model=Folder, summary="Move Folder", responses=ERROR_RESPONSES)
async def move_folder(folder_id: int, body: FolderMove, principal: Principal = Depends(get_principal)):
    """Re-parent a folder. Moving under itself or a descendant is rejected."""
    return await folder_manager.move_folder(folder_id, principal, body.parent_id)


@router.post("/{folder_id}/archive", response_model=MessageResponse, summary="Archive Folder", responses=ERROR_RESPONSES)
async def archive_folder(folder_id: int, principal: Principal = Depends(get_principal)):
    """Archive a folder with its subtree and documents. Requires manage."""
    cascade = await folder_manager.archive_folder(folder_id, principal)
    return _cascade_response("Folder archived", folder_id, cascade)


@router.post("/{folder_id}/restore", response_model=MessageResponse, summary="Restore Folder", responses=ERROR_RESPONSES)
async def restore_folder(folder_id: int, principal: Principal = Depends(get_principal)):
    """Restore an archived folder with its subtree and documents. Requires manage."""
    cascade = await folder_manager.restore_folder(folder_id, principal)
    return _cascade_response("Folder restored", folder_id, cascade)


@router.delete(
    "/{folder_id}",
    response_model=MessageResponse,
    summary="Delete Folder",
    description="""
Permanently delete a folder, its whole subtree and every document inside.

**Authorization**: owner or administrator only
    """,
    responses=ERROR_RESPONSES,
)
async def delete_folder(folder_id: int, principal: Principal = Depends(get_principal)):
    """Hard-delete a folder tree."""
    cascade = await folder_manager.delete_folder(folder_id, principal)
    return _cascade_response("Folder deleted", folder_id, cascade)
