"""Document version endpoints."""

import logging

from fastapi import APIRouter, Depends

from ...core.version_manager import VersionManager
from ...models.principal import Principal
from ...models.version import SetCurrentVersionRequest, VersionCreate, VersionListResponse, VersionResponse
from ..dependencies import get_principal
from .documents import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/documents/{document_id}/versions", tags=["versions"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
version_manager: VersionManager = None


def set_managers(version_mgr: VersionManager):
    """Set the manager instances (called from main.py)."""
    globals()['version_manager'] = version_mgr


@router.post(
    "",
    response_model=VersionResponse,
    status_code=201,
    summary="Upload Version",
    description="""
Record a new immutable version of a document and make it current.

The file itself is already in object storage; this call records its key.

**Workflow**:
1. Lock the document row so concurrent uploads queue
2. Assign `max(version_number) + 1`
3. Insert the version and move the current-version pointer
4. Append a `version_uploaded` audit entry

A collision on the version number is retried once, then reported as `409 conflict`.

**Authorization**: edit on the document
    """,
    responses={**ERROR_RESPONSES, 409: {"description": "Concurrent upload could not be serialized"}},
)
async def create_version(document_id: int, file: VersionCreate, principal: Principal = Depends(get_principal)):
    """Upload a new version."""
    version = await version_manager.create_version(document_id, principal, file)
    return version_manager.to_response(version, version.id)


@router.get("", response_model=VersionListResponse, summary="List Versions", responses=ERROR_RESPONSES)
async def list_versions(document_id: int, principal: Principal = Depends(get_principal)):
    """List versions newest first. Requires view."""
    return await version_manager.list_versions(document_id, principal)


@router.put(
    "/current",
    response_model=VersionResponse,
    summary="Set Current Version",
    description="""
Point the document at one of its earlier versions.

A version id belonging to another document is rejected with `422 invalid_input`
and the pointer is left unchanged.

**Authorization**: edit on the document
    """,
    responses=ERROR_RESPONSES,
)
async def set_current_version(
    document_id: int, body: SetCurrentVersionRequest, principal: Principal = Depends(get_principal)
):
    """Restore an earlier version as current."""
    version = await version_manager.set_current_version(document_id, body.version_id, principal)
    return version_manager.to_response(version, version.id)


@router.get("/{version_id}", response_model=VersionResponse, summary="Get Version", responses=ERROR_RESPONSES)
async def get_version(document_id: int, version_id: int, principal: Principal = Depends(get_principal)):
    """Get one version with its public URL. Requires view."""
    return await version_manager.get_version(document_id, version_id, principal)
