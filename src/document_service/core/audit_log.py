"""Append-only audit log of mutating actions against documents."""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import AuditLogModel
from ..models.activity import AuditEntry
from ..models.principal import Principal
from .access_resolver import AccessLevel
from .guards import authorize_document
from .pagination import Page, normalize_paging, paginate

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    DOCUMENT_CREATED = "document_created"
    DOCUMENT_UPDATED = "document_updated"
    DOCUMENT_MOVED = "document_moved"
    TAGS_UPDATED = "tags_updated"
    DOCUMENT_ARCHIVED = "document_archived"
    DOCUMENT_RESTORED = "document_restored"
    VERSION_UPLOADED = "version_uploaded"
    VERSION_RESTORED = "version_restored"
    ACCESS_GRANTED = "access_granted"
    ACCESS_REVOKED = "access_revoked"
    VISIBILITY_CHANGED = "visibility_changed"
    COMMENT_ADDED = "comment_added"
    COMMENT_DELETED = "comment_deleted"


class AuditLog:
    """Writes entries inside callers' transactions and serves the log to managers."""

    def __init__(self, db_client: DatabaseClient):
        self.db = db_client

    @staticmethod
    def record(
        session: AsyncSession,
        document_id: int,
        user_id: int,
        action: AuditAction,
        details: Optional[str] = None,
        version_id: Optional[int] = None,
    ) -> AuditLogModel:
        """Append one entry to the caller's transaction.

        The entry commits or rolls back together with the change it describes.
        """
        entry = AuditLogModel(
            document_id=document_id,
            user_id=user_id,
            action=action.value,
            details=details,
            version_id=version_id,
        )
        session.add(entry)
        return entry

    async def list_entries(
        self,
        document_id: int,
        principal: Principal,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page[AuditEntry]:
        """List a document's audit entries, newest first.

        Requires manage: the log is administrative metadata.
        """
        page, page_size = normalize_paging(page, page_size)
        async with self.db.snapshot() as session:
            await authorize_document(session, principal, document_id, AccessLevel.MANAGE, "read audit log")
            stmt = (
                select(AuditLogModel)
                .where(AuditLogModel.document_id == document_id)
                .order_by(AuditLogModel.created_at.desc(), AuditLogModel.id.desc())
            )
            rows, pagination = await paginate(session, stmt, page, page_size)
        return Page([AuditEntry.model_validate(row) for row in rows], pagination)
