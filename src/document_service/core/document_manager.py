"""Document management business logic."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..infrastructure.database import queries
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import DocumentModel, TagModel
from ..infrastructure.storage import ObjectStorageProvider
from ..models.document import (
    Document,
    DocumentCreate,
    DocumentDetail,
    DocumentResponse,
    DocumentUpdate,
)
from ..models.principal import Principal
from ..models.version import Version
from .access_resolver import (
    AccessDecision,
    AccessLevel,
    build_visibility_predicate,
    require_owner_or_admin,
)
from .audit_log import AuditAction, AuditLog
from .cleanup import discard_objects
from .errors import InvalidInputError
from .guards import ACTIVE, ARCHIVED, authorize_document, authorize_folder
from .pagination import Page, normalize_paging, paginate
from .version_manager import VersionManager

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 100
DOCUMENT_STATUSES = (ACTIVE, ARCHIVED)


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Trim, lower-case and de-duplicate tags, keeping first-seen order."""
    normalized: List[str] = []
    for tag in tags or []:
        tag = (tag or "").strip().lower()
        if not tag or tag in normalized:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise InvalidInputError(f"Tag longer than {MAX_TAG_LENGTH} characters: {tag[:20]}...")
        normalized.append(tag)
    return normalized


def _to_document(row: DocumentModel, tags: List[str]) -> Document:
    return Document.model_validate(row).model_copy(update={"tags": tags})


class DocumentManager:
    """Business logic for document CRUD operations."""

    def __init__(self, db_client: DatabaseClient, storage: ObjectStorageProvider):
        """Initialize document manager.

        Args:
            db_client: Database client for metadata
            storage: Object storage provider, for URLs and clean-up after deletes
        """
        self.db = db_client
        self.storage = storage
        self.versions = VersionManager(db_client, storage)

    async def _detail(
        self, session: AsyncSession, document: DocumentModel, decision: AccessDecision
    ) -> DocumentDetail:
        tags = await queries.get_tags(session, document.id)
        current_version = None
        if document.current_version_id is not None:
            row = await queries.get_version(session, document.current_version_id)
            if row is not None:
                current_version = Version.model_validate(row)
        return DocumentDetail(
            document=_to_document(document, tags),
            current_version=current_version,
            access_level=decision.level.value,
        )

    def to_response(self, detail: DocumentDetail) -> DocumentResponse:
        current = None
        if detail.current_version is not None:
            current = self.versions.to_response(
                detail.current_version, detail.document.current_version_id
            )
        return DocumentResponse.from_document(
            detail.document, access_level=detail.access_level, current_version=current
        )

    async def create_document(self, principal: Principal, doc_data: DocumentCreate) -> DocumentDetail:
        """Create a document owned by the caller, optionally with its first version.

        Document row, tags, first version, current-version pointer and the
        ``document_created`` entry commit together.

        Args:
            principal: Creator; becomes the owner
            doc_data: Document creation data

        Returns:
            Created document with its current version, if any
        """
        title = doc_data.title.strip()
        if not title:
            raise InvalidInputError("Document title must not be empty")
        tags = normalize_tags(doc_data.tags)

        async with self.db.transaction() as session:
            if doc_data.folder_id is not None:
                await authorize_folder(
                    session, principal, doc_data.folder_id, AccessLevel.VIEW, "create document in folder"
                )

            document = DocumentModel(
                title=title,
                description=doc_data.description,
                owner_id=principal.id,
                folder_id=doc_data.folder_id,
                is_public=doc_data.is_public,
                is_departmental=doc_data.is_departmental,
                department=principal.department or "",
                status=ACTIVE,
                current_version_number=0,
            )
            session.add(document)
            await session.flush()

            await queries.replace_tags(session, document.id, tags)
            version_id = None
            if doc_data.file is not None:
                version = await VersionManager.add_version(session, document, principal.id, doc_data.file)
                version_id = version.id
            AuditLog.record(
                session, document.id, principal.id, AuditAction.DOCUMENT_CREATED,
                details=title, version_id=version_id,
            )
            detail = await self._detail(session, document, AccessDecision(AccessLevel.MANAGE, "owner", is_owner=True))

        logger.info(f"Created document {document.id} for user {principal.id} (version {version_id})")
        return detail

    async def get_document(
        self, document_id: int, principal: Principal, include_archived: bool = False
    ) -> DocumentDetail:
        """Get a document the caller may view.

        Raises:
            NotFoundError: Missing, or archived and ``include_archived`` is false
            ForbiddenError: Caller resolves to none
        """
        async with self.db.snapshot() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.VIEW, "read document",
                include_archived=include_archived,
            )
            return await self._detail(session, document, decision)

    async def update_document(
        self, document_id: int, principal: Principal, updates: DocumentUpdate
    ) -> DocumentDetail:
        changes = updates.model_dump(exclude_unset=True)
        if "title" in changes:
            if changes["title"] is None or not changes["title"].strip():
                raise InvalidInputError("Document title must not be empty")
            changes["title"] = changes["title"].strip()

        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.EDIT, "edit document", include_archived=False
            )
            for field_name, value in changes.items():
                setattr(document, field_name, value)
            if changes:
                await session.flush()
                AuditLog.record(
                    session, document_id, principal.id, AuditAction.DOCUMENT_UPDATED,
                    details=", ".join(sorted(changes)), version_id=document.current_version_id,
                )
            detail = await self._detail(session, document, decision)

        logger.info(f"Updated document {document_id} ({', '.join(sorted(changes)) or 'no changes'})")
        return detail

    async def set_tags(self, document_id: int, principal: Principal, tags: List[str]) -> List[str]:
        """Replace the document's tags."""
        tags = normalize_tags(tags)
        async with self.db.transaction() as session:
            document, _ = await authorize_document(
                session, principal, document_id, AccessLevel.EDIT, "set tags", include_archived=False
            )
            await queries.replace_tags(session, document_id, tags)
            AuditLog.record(
                session, document_id, principal.id, AuditAction.TAGS_UPDATED, details=",".join(tags),
                version_id=document.current_version_id,
            )

        logger.info(f"Set {len(tags)} tags on document {document_id}")
        return tags

    async def move_document(
        self, document_id: int, principal: Principal, folder_id: Optional[int]
    ) -> DocumentDetail:
        """Move a document into ``folder_id``, or to root level when None."""
        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.EDIT, "move document", include_archived=False
            )
            if folder_id is not None:
                await authorize_folder(
                    session, principal, folder_id, AccessLevel.VIEW, "move document into folder"
                )
            old_folder_id = document.folder_id
            document.folder_id = folder_id
            await session.flush()
            AuditLog.record(
                session, document_id, principal.id, AuditAction.DOCUMENT_MOVED,
                details=f"{old_folder_id} -> {folder_id}",
                version_id=document.current_version_id,
            )
            detail = await self._detail(session, document, decision)

        logger.info(f"Moved document {document_id} from folder {old_folder_id} to {folder_id}")
        return detail

    async def archive_document(self, document_id: int, principal: Principal) -> DocumentDetail:
        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.MANAGE, "archive document", include_archived=False
            )
            document.status = ARCHIVED
            await session.flush()
            AuditLog.record(
                session, document_id, principal.id, AuditAction.DOCUMENT_ARCHIVED,
                version_id=document.current_version_id,
            )
            detail = await self._detail(session, document, decision)

        logger.info(f"Archived document {document_id}")
        return detail

    async def restore_document(self, document_id: int, principal: Principal) -> DocumentDetail:
        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.MANAGE, "restore document"
            )
            if document.status != ACTIVE:
                document.status = ACTIVE
                await session.flush()
                AuditLog.record(
                    session, document_id, principal.id, AuditAction.DOCUMENT_RESTORED,
                    version_id=document.current_version_id,
                )
            detail = await self._detail(session, document, decision)

        logger.info(f"Restored document {document_id}")
        return detail

    async def delete_document(self, document_id: int, principal: Principal) -> List[str]:
        """Hard-delete a document and everything attached to it.

        Only the owner or an administrator may do this. Stored objects are
        removed after the metadata transaction commits; failures are logged.

        Returns:
            Storage keys of the deleted versions
        """
        async with self.db.transaction() as session:
            _, decision = await authorize_document(
                session, principal, document_id, AccessLevel.MANAGE, "delete document"
            )
            require_owner_or_admin(decision, "delete document", principal, f"document {document_id}")
            storage_keys = await queries.get_storage_keys(session, [document_id])
            await queries.purge_documents(session, [document_id])

        logger.info(f"Deleted document {document_id} with {len(storage_keys)} versions")
        await discard_objects(self.storage, storage_keys, f"document {document_id}")
        return storage_keys

    async def list_documents(
        self,
        principal: Principal,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        status: str = ACTIVE,
        folder_id: Optional[int] = None,
        tag: Optional[str] = None,
        query: Optional[str] = None,
    ) -> Page[Document]:
        """List documents the caller may see, most recently updated first.

        Args:
            principal: Caller; rows are filtered by the visibility predicate
            status: "active" or "archived"
            folder_id: Only documents directly inside this folder
            tag: Only documents carrying this tag
            query: Case-insensitive substring of the title
        """
        if status not in DOCUMENT_STATUSES:
            raise InvalidInputError(f"Unknown status '{status}'. Expected one of: {', '.join(DOCUMENT_STATUSES)}")
        page, page_size = normalize_paging(page, page_size)

        stmt = select(DocumentModel).where(
            build_visibility_predicate(principal),
            DocumentModel.status == status,
        )
        if folder_id is not None:
            stmt = stmt.where(DocumentModel.folder_id == folder_id)
        if tag:
            stmt = stmt.where(
                exists().where(
                    TagModel.document_id == DocumentModel.id,
                    TagModel.tag == tag.strip().lower(),
                )
            )
        if query and query.strip():
            pattern = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            stmt = stmt.where(DocumentModel.title.ilike(f"%{pattern}%", escape="\\"))
        stmt = stmt.order_by(DocumentModel.updated_at.desc(), DocumentModel.id.desc())

        async with self.db.snapshot() as session:
            rows, pagination = await paginate(session, stmt, page, page_size)
            tags = await queries.get_tags_for(session, [row.id for row in rows])

        return Page([_to_document(row, tags[row.id]) for row in rows], pagination)
