"""Access rule (share) and visibility endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.sharing_manager import SharingManager
from ...models.principal import Principal
from ...models.requests import MessageResponse
from ...models.sharing import (
    AccessResponse,
    AccessRule,
    GrantRequest,
    ShareListResponse,
    ShareTarget,
    VisibilityUpdate,
)
from ..dependencies import get_principal
from .documents import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/documents/{document_id}", tags=["sharing"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
sharing_manager: SharingManager = None


def set_managers(sharing_mgr: SharingManager):
    """Set the manager instances (called from main.py)."""
    globals()['sharing_manager'] = sharing_mgr


@router.get("/shares", response_model=ShareListResponse, summary="List Shares", responses=ERROR_RESPONSES)
async def list_shares(document_id: int, principal: Principal = Depends(get_principal)):
    """List explicit access rules. Requires manage."""
    return await sharing_manager.list_shares(document_id, principal)


@router.post(
    "/shares",
    response_model=AccessRule,
    summary="Grant Access",
    description="""
Grant a user or a department access to a document.

Exactly one of `user_id` and `department` must be set. Granting to a target
that already has a rule replaces its level instead of adding a row.

**Request Example**:
```json
{"department": "finance", "access_level": "edit"}
```

**Authorization**: manage. Granting `manage`, or changing an existing
`manage` rule, additionally requires being the owner or an administrator.
    """,
    responses=ERROR_RESPONSES,
)
async def grant_access(document_id: int, grant: GrantRequest, principal: Principal = Depends(get_principal)):
    """Create or replace an access rule."""
    return await sharing_manager.grant_access(document_id, principal, grant)


@router.delete("/shares", response_model=MessageResponse, summary="Revoke Access", responses=ERROR_RESPONSES)
async def revoke_access(
    document_id: int,
    user_id: Optional[int] = Query(None, description="User whose rule to delete"),
    department: Optional[str] = Query(None, description="Department whose rule to delete"),
    principal: Principal = Depends(get_principal),
):
    """Delete the access rule for a user or department. Requires manage."""
    await sharing_manager.revoke_access(document_id, principal, ShareTarget(user_id=user_id, department=department))
    return MessageResponse(
        message="Access revoked",
        details={"document_id": document_id, "user_id": user_id, "department": department},
    )


@router.patch("/visibility", response_model=AccessResponse, summary="Change Visibility", responses=ERROR_RESPONSES)
async def update_visibility(
    document_id: int, visibility: VisibilityUpdate, principal: Principal = Depends(get_principal)
):
    """Set the public and departmental flags. Requires manage."""
    return await sharing_manager.update_visibility(document_id, principal, visibility)


@router.get("/access", response_model=AccessResponse, summary="My Access", responses=ERROR_RESPONSES)
async def get_my_access(document_id: int, principal: Principal = Depends(get_principal)):
    """The caller's effective access level on the document."""
    return await sharing_manager.get_my_access(document_id, principal)
