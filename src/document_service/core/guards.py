"""Load-and-authorize helpers used at the top of every manager operation.

These read rows inside the caller's session and then delegate the decision
to the access resolver; they never decide access themselves.
"""

from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..infrastructure.database import queries
from ..infrastructure.database.models import DocumentModel, FolderModel
from ..models.principal import Principal
from .access_resolver import (
    AccessDecision,
    AccessLevel,
    require,
    resolve_document_access,
    resolve_folder_access,
)
from .errors import NotFoundError

ACTIVE = "active"
ARCHIVED = "archived"


async def load_document(
    session: AsyncSession,
    document_id: int,
    include_archived: bool = True,
    lock: bool = False,
) -> DocumentModel:
    """Fetch a document row or raise NotFoundError.

    Args:
        include_archived: Treat archived documents as present
        lock: Take the document row's write lock first
    """
    if lock:
        document = await queries.lock_document(session, document_id)
    else:
        document = await queries.get_document(session, document_id)
    if document is None:
        raise NotFoundError(f"Document {document_id} not found")
    if not include_archived and document.status != ACTIVE:
        raise NotFoundError(f"Document {document_id} not found")
    return document


async def authorize_document(
    session: AsyncSession,
    principal: Principal,
    document_id: int,
    required: AccessLevel,
    action: str,
    include_archived: bool = True,
    lock: bool = False,
) -> Tuple[DocumentModel, AccessDecision]:
    """Load a document, resolve the principal's level and enforce ``required``."""
    document = await load_document(session, document_id, include_archived=include_archived, lock=lock)
    rules = await queries.get_rules(session, document_id)
    decision = resolve_document_access(principal, document, rules)
    require(decision, required, action, principal, f"document {document_id}")
    return document, decision


async def load_folder(
    session: AsyncSession, folder_id: int, include_archived: bool = False
) -> FolderModel:
    folder = await queries.get_folder(session, folder_id)
    if folder is None or (not include_archived and folder.status != ACTIVE):
        raise NotFoundError(f"Folder {folder_id} not found")
    return folder


async def authorize_folder(
    session: AsyncSession,
    principal: Principal,
    folder_id: int,
    required: AccessLevel,
    action: str,
    include_archived: bool = False,
) -> Tuple[FolderModel, AccessDecision]:
    """Load a folder, resolve the principal's level and enforce ``required``."""
    folder = await load_folder(session, folder_id, include_archived=include_archived)
    decision = resolve_folder_access(principal, folder)
    require(decision, required, action, principal, f"folder {folder_id}")
    return folder, decision
