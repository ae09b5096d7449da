"""Folder tree management.

Folders form a forest through ``parent_id``. Parent assignments are validated
on write so no cycle can be created through this service; reads still walk
with a visited-id set so rows written by other tools cannot hang a request.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config.settings import get_settings
from ..infrastructure.database import queries
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import DocumentModel, FolderModel
from ..infrastructure.storage import ObjectStorageProvider
from ..models.folder import Breadcrumb, Folder, FolderCreate
from ..models.principal import Principal
from .access_resolver import AccessLevel, build_folder_visibility_predicate, require_owner_or_admin
from .audit_log import AuditAction, AuditLog
from .cleanup import discard_objects
from .errors import ConflictError, InvalidInputError
from .guards import ACTIVE, ARCHIVED, authorize_folder
from .pagination import Page, normalize_paging, paginate

logger = logging.getLogger(__name__)

RESERVED_FOLDER_NAMES = ("public",)


def normalize_folder_name(name: str) -> str:
    return (name or "").strip().lower()


@dataclass
class FolderCascade:
    """Rows touched by a cascading folder operation."""
    folder_ids: List[int] = field(default_factory=list)
    document_ids: List[int] = field(default_factory=list)


async def walk_ancestors(session: AsyncSession, folder_id: int) -> List[FolderModel]:
    """Folders from ``folder_id`` up to its root, nearest first.

    Stops at the first id seen twice and returns what was collected up to
    that point, so a cyclic chain yields at most one entry per distinct folder.
    """
    chain: List[FolderModel] = []
    visited = set()
    current_id: Optional[int] = folder_id
    while current_id is not None and current_id not in visited:
        visited.add(current_id)
        folder = await queries.get_folder(session, current_id)
        if folder is None:
            break
        chain.append(folder)
        current_id = folder.parent_id
    return chain


async def collect_subtree(session: AsyncSession, root_id: int) -> List[int]:
    """Breadth-first ids of ``root_id`` and all its descendants, root first.

    Raises:
        InvalidInputError: The tree is deeper than FOLDER_MAX_DEPTH
    """
    max_depth = get_settings().folder_max_depth
    ordered = [root_id]
    visited = {root_id}
    frontier = [root_id]
    depth = 0
    while frontier:
        children = [cid for cid in await queries.get_child_folder_ids(session, frontier) if cid not in visited]
        if not children:
            break
        depth += 1
        if depth > max_depth:
            raise InvalidInputError(f"Folder {root_id} is nested deeper than {max_depth} levels")
        visited.update(children)
        ordered.extend(children)
        frontier = children
    return ordered


class FolderManager:
    """Business logic for folder CRUD and tree operations."""

    def __init__(self, db_client: DatabaseClient, storage: ObjectStorageProvider):
        self.db = db_client
        self.storage = storage

    async def _check_sibling_name(
        self,
        session: AsyncSession,
        name: str,
        owner_id: int,
        parent_id: Optional[int],
        exclude_id: Optional[int] = None,
    ) -> None:
        stmt = select(FolderModel.id).where(
            FolderModel.name == name,
            FolderModel.owner_id == owner_id,
        )
        if parent_id is None:
            stmt = stmt.where(FolderModel.parent_id.is_(None))
        else:
            stmt = stmt.where(FolderModel.parent_id == parent_id)
        if exclude_id is not None:
            stmt = stmt.where(FolderModel.id != exclude_id)
        result = await session.execute(stmt.limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(f"A folder named '{name}' already exists here")

    async def create_folder(self, principal: Principal, folder_data: FolderCreate) -> Folder:
        """Create a folder owned by the caller.

        Raises:
            InvalidInputError: Empty or reserved name
            ConflictError: Same name already used by the caller under this parent
            ForbiddenError: Caller lacks manage on the parent
        """
        name = normalize_folder_name(folder_data.name)
        if not name:
            raise InvalidInputError("Folder name must not be empty")
        reserved = set(RESERVED_FOLDER_NAMES)
        if principal.department:
            reserved.add(principal.department.strip().lower())
        if name in reserved:
            raise InvalidInputError(f"Folder name '{name}' is reserved")

        async with self.db.transaction() as session:
            if folder_data.parent_id is not None:
                await authorize_folder(
                    session, principal, folder_data.parent_id, AccessLevel.MANAGE, "create subfolder"
                )
            await self._check_sibling_name(session, name, principal.id, folder_data.parent_id)

            folder = FolderModel(
                name=name,
                parent_id=folder_data.parent_id,
                owner_id=principal.id,
                is_public=folder_data.is_public,
                is_departmental=folder_data.is_departmental,
                department=principal.department or "",
                status=ACTIVE,
            )
            session.add(folder)
            await session.flush()

        logger.info(f"Created folder {folder.id} under {folder.parent_id} for user {principal.id}")
        return Folder.model_validate(folder)

    async def get_folder(self, folder_id: int, principal: Principal) -> Folder:
        async with self.db.snapshot() as session:
            folder, _ = await authorize_folder(session, principal, folder_id, AccessLevel.VIEW, "read folder")
            return Folder.model_validate(folder)

    async def list_children(
        self,
        principal: Principal,
        parent_id: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page[Folder]:
        """List active child folders; ``parent_id=None`` lists root folders.

        The parent's owner and administrators see every child. Everyone else
        sees the children the folder visibility predicate admits.
        """
        page, page_size = normalize_paging(page, page_size)
        async with self.db.snapshot() as session:
            stmt = select(FolderModel).where(FolderModel.status == ACTIVE)
            if parent_id is None:
                stmt = stmt.where(FolderModel.parent_id.is_(None))
                sees_all = principal.is_admin
            else:
                _, decision = await authorize_folder(
                    session, principal, parent_id, AccessLevel.VIEW, "list folder"
                )
                stmt = stmt.where(FolderModel.parent_id == parent_id)
                sees_all = decision.can_administer
            if not sees_all:
                stmt = stmt.where(build_folder_visibility_predicate(principal))

            stmt = stmt.order_by(FolderModel.name, FolderModel.id)
            rows, pagination = await paginate(session, stmt, page, page_size)
        return Page([Folder.model_validate(row) for row in rows], pagination)

    async def get_breadcrumbs(self, folder_id: int, principal: Principal) -> List[Breadcrumb]:
        """(id, name) pairs from the root down to ``folder_id``."""
        async with self.db.snapshot() as session:
            await authorize_folder(session, principal, folder_id, AccessLevel.VIEW, "read folder path")
            chain = await walk_ancestors(session, folder_id)
        return [Breadcrumb(id=f.id, name=f.name) for f in reversed(chain)]

    async def resolve_path(self, folder_id: int, principal: Principal) -> List[str]:
        """Folder names from the root down to ``folder_id``."""
        return [crumb.name for crumb in await self.get_breadcrumbs(folder_id, principal)]

    async def move_folder(self, folder_id: int, principal: Principal, new_parent_id: Optional[int]) -> Folder:
        """Re-parent a folder.

        Raises:
            InvalidInputError: The new parent is the folder itself or one of its descendants
        """
        async with self.db.transaction() as session:
            folder, _ = await authorize_folder(session, principal, folder_id, AccessLevel.MANAGE, "move folder")
            if new_parent_id is not None:
                await authorize_folder(
                    session, principal, new_parent_id, AccessLevel.MANAGE, "move folder into"
                )
                ancestor_ids = [f.id for f in await walk_ancestors(session, new_parent_id)]
                if folder_id in ancestor_ids:
                    raise InvalidInputError(
                        f"Cannot move folder {folder_id} under itself or one of its descendants"
                    )
            await self._check_sibling_name(session, folder.name, folder.owner_id, new_parent_id, exclude_id=folder_id)

            old_parent_id = folder.parent_id
            folder.parent_id = new_parent_id
            await session.flush()

        logger.info(f"Moved folder {folder_id} from {old_parent_id} to {new_parent_id}")
        return Folder.model_validate(folder)

    async def _set_subtree_status(
        self, session: AsyncSession, principal: Principal, root_id: int, status: str
    ) -> FolderCascade:
        folder_ids = await collect_subtree(session, root_id)
        from_status = ACTIVE if status == ARCHIVED else ARCHIVED
        action = AuditAction.DOCUMENT_ARCHIVED if status == ARCHIVED else AuditAction.DOCUMENT_RESTORED

        await session.execute(
            update(FolderModel).where(FolderModel.id.in_(folder_ids)).values(status=status)
        )
        result = await session.execute(
            select(DocumentModel.id, DocumentModel.current_version_id).where(
                DocumentModel.folder_id.in_(folder_ids),
                DocumentModel.status == from_status,
            )
        )
        current_versions = dict(result.all())
        document_ids = list(current_versions)
        if document_ids:
            await session.execute(
                update(DocumentModel).where(DocumentModel.id.in_(document_ids)).values(status=status)
            )
            for doc_id in document_ids:
                AuditLog.record(
                    session, doc_id, principal.id, action,
                    details=f"via folder {root_id}", version_id=current_versions[doc_id],
                )
        return FolderCascade(folder_ids=folder_ids, document_ids=document_ids)

    async def archive_folder(self, folder_id: int, principal: Principal) -> FolderCascade:
        """Archive a folder, its subtree and every active document inside."""
        async with self.db.transaction() as session:
            await authorize_folder(session, principal, folder_id, AccessLevel.MANAGE, "archive folder")
            cascade = await self._set_subtree_status(session, principal, folder_id, ARCHIVED)

        logger.info(
            f"Archived folder {folder_id}: {len(cascade.folder_ids)} folders, "
            f"{len(cascade.document_ids)} documents"
        )
        return cascade

    async def restore_folder(self, folder_id: int, principal: Principal) -> FolderCascade:
        """Reactivate an archived folder with its subtree and documents.

        Raises:
            InvalidInputError: The parent folder is still archived
        """
        async with self.db.transaction() as session:
            folder, _ = await authorize_folder(
                session, principal, folder_id, AccessLevel.MANAGE, "restore folder", include_archived=True
            )
            if folder.parent_id is not None:
                parent = await queries.get_folder(session, folder.parent_id)
                if parent is not None and parent.status != ACTIVE:
                    raise InvalidInputError(f"Parent folder {folder.parent_id} is archived; restore it first")
            cascade = await self._set_subtree_status(session, principal, folder_id, ACTIVE)

        logger.info(
            f"Restored folder {folder_id}: {len(cascade.folder_ids)} folders, "
            f"{len(cascade.document_ids)} documents"
        )
        return cascade

    async def delete_folder(self, folder_id: int, principal: Principal) -> FolderCascade:
        """Hard-delete a folder with its subtree and everything inside.

        Metadata goes in one transaction; stored objects are removed afterwards
        on a best-effort basis.
        """
        async with self.db.transaction() as session:
            folder, decision = await authorize_folder(
                session, principal, folder_id, AccessLevel.MANAGE, "delete folder", include_archived=True
            )
            require_owner_or_admin(decision, "delete folder", principal, f"folder {folder_id}")

            folder_ids = await collect_subtree(session, folder_id)
            document_ids = await queries.get_document_ids_in_folders(session, folder_ids)
            storage_keys = await queries.get_storage_keys(session, document_ids)
            await queries.purge_documents(session, document_ids)
            await queries.purge_folders(session, folder_ids)

        logger.info(
            f"Deleted folder {folder_id}: {len(folder_ids)} folders, {len(document_ids)} documents"
        )
        await discard_objects(self.storage, storage_keys, f"folder {folder_id}")
        return FolderCascade(folder_ids=folder_ids, document_ids=document_ids)
