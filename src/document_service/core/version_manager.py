"""Version management: immutable uploads and the current-version pointer."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..infrastructure.database import queries
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import DocumentModel, VersionModel
from ..infrastructure.storage import ObjectStorageProvider
from ..models.principal import Principal
from ..models.version import Version, VersionCreate, VersionListResponse, VersionResponse
from .access_resolver import AccessLevel
from .audit_log import AuditAction, AuditLog
from .errors import InvalidInputError, NotFoundError
from .guards import authorize_document
from .retry import integrity_as_conflict, retry_on_conflict

logger = logging.getLogger(__name__)


class VersionManager:
    """Business logic for document versions."""

    def __init__(self, db_client: DatabaseClient, storage: ObjectStorageProvider):
        """Initialize version manager.

        Args:
            db_client: Database client for metadata
            storage: Object storage provider, used to derive public URLs
        """
        self.db = db_client
        self.storage = storage

    @staticmethod
    async def add_version(
        session: AsyncSession, document: DocumentModel, uploaded_by: int, file: VersionCreate
    ) -> VersionModel:
        """Insert the next version of a locked document and point the document at it.

        The caller must hold the document row lock taken by ``lock_document``
        (or have inserted the document in the same transaction).
        """
        number = await queries.max_version_number(session, document.id) + 1
        version = VersionModel(
            document_id=document.id,
            version_number=number,
            storage_key=file.storage_key,
            size_bytes=file.size_bytes,
            mime_type=file.mime_type,
            uploaded_by=uploaded_by,
        )
        session.add(version)
        await session.flush()

        document.current_version_id = version.id
        document.current_version_number = number
        if file.original_file_name:
            document.original_file_name = file.original_file_name
        await session.flush()
        return version

    def to_response(self, version: Version, current_version_id: Optional[int]) -> VersionResponse:
        return VersionResponse.from_version(
            version,
            public_url=self.storage.public_url(version.storage_key),
            is_current=version.id == current_version_id,
        )

    async def create_version(self, document_id: int, principal: Principal, file: VersionCreate) -> Version:
        """Upload a new version and make it current.

        Number assignment, pointer move and audit entry commit together.
        A collision on the version number is retried once.

        Args:
            document_id: Target document
            principal: Uploader, needs edit
            file: Metadata of the object already placed in storage

        Returns:
            The created version
        """

        async def attempt() -> Version:
            async with integrity_as_conflict(f"version upload for document {document_id}"):
                async with self.db.transaction() as session:
                    document, _ = await authorize_document(
                        session, principal, document_id, AccessLevel.EDIT, "upload version",
                        include_archived=False, lock=True,
                    )
                    version = await self.add_version(session, document, principal.id, file)
                    AuditLog.record(
                        session, document_id, principal.id, AuditAction.VERSION_UPLOADED,
                        details=f"v{version.version_number} {file.storage_key}",
                        version_id=version.id,
                    )
            return Version.model_validate(version)

        version = await retry_on_conflict(attempt, f"version upload for document {document_id}")
        logger.info(f"Created version {version.version_number} ({version.id}) of document {document_id}")
        return version

    async def list_versions(self, document_id: int, principal: Principal) -> VersionListResponse:
        """List versions newest first, flagging the current one."""
        async with self.db.snapshot() as session:
            document, _ = await authorize_document(
                session, principal, document_id, AccessLevel.VIEW, "list versions"
            )
            result = await session.execute(
                select(VersionModel)
                .where(VersionModel.document_id == document_id)
                .order_by(VersionModel.version_number.desc())
            )
            rows = result.scalars().all()
            current_version_id = document.current_version_id

        versions = [self.to_response(Version.model_validate(row), current_version_id) for row in rows]
        return VersionListResponse(
            document_id=document_id,
            current_version_id=current_version_id,
            versions=versions,
        )

    async def get_version(self, document_id: int, version_id: int, principal: Principal) -> VersionResponse:
        async with self.db.snapshot() as session:
            document, _ = await authorize_document(
                session, principal, document_id, AccessLevel.VIEW, "read version"
            )
            row = await queries.get_version(session, version_id)
            if row is None or row.document_id != document_id:
                raise NotFoundError(f"Version {version_id} not found on document {document_id}")
            return self.to_response(Version.model_validate(row), document.current_version_id)

    async def set_current_version(self, document_id: int, version_id: int, principal: Principal) -> Version:
        """Point the document at one of its existing versions.

        Raises:
            InvalidInputError: The version does not exist or belongs to another
                document; the pointer is left unchanged
        """
        async with self.db.transaction() as session:
            document, _ = await authorize_document(
                session, principal, document_id, AccessLevel.EDIT, "set current version",
                include_archived=False, lock=True,
            )
            row = await queries.get_version(session, version_id)
            if row is None or row.document_id != document_id:
                raise InvalidInputError(f"Version {version_id} does not belong to document {document_id}")

            document.current_version_id = row.id
            document.current_version_number = row.version_number
            AuditLog.record(
                session, document_id, principal.id, AuditAction.VERSION_RESTORED,
                details=f"v{row.version_number}",
                version_id=row.id,
            )
            version = Version.model_validate(row)

        logger.info(f"Document {document_id} now points at version {version.version_number}")
        return version
