"""Query helpers shared by the managers.

Every helper takes the caller's session so that it runs inside whatever
transaction the manager opened.
"""

from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AccessRuleModel,
    AuditLogModel,
    CommentModel,
    DocumentModel,
    FolderModel,
    TagModel,
    VersionModel,
    utcnow,
)


async def get_document(session: AsyncSession, document_id: int) -> Optional[DocumentModel]:
    result = await session.execute(select(DocumentModel).where(DocumentModel.id == document_id))
    return result.scalar_one_or_none()


async def lock_document(session: AsyncSession, document_id: int) -> Optional[DocumentModel]:
    """Take the document row's write lock and return the fresh row.

    The lock is acquired with an UPDATE, which holds a row lock on PostgreSQL
    and the database write lock on SQLite until the transaction ends, so
    concurrent writers to the same document queue here.
    """
    result = await session.execute(
        update(DocumentModel)
        .where(DocumentModel.id == document_id)
        .values(updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    result = await session.execute(
        select(DocumentModel)
        .where(DocumentModel.id == document_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_rules(session: AsyncSession, document_id: int) -> List[AccessRuleModel]:
    result = await session.execute(
        select(AccessRuleModel)
        .where(AccessRuleModel.document_id == document_id)
        .order_by(AccessRuleModel.id)
    )
    return list(result.scalars().all())


async def find_rule(
    session: AsyncSession,
    document_id: int,
    user_id: Optional[int] = None,
    department: Optional[str] = None,
) -> Optional[AccessRuleModel]:
    """Find the rule on the natural key (document, user) or (document, department)."""
    stmt = select(AccessRuleModel).where(AccessRuleModel.document_id == document_id)
    if user_id is not None:
        stmt = stmt.where(AccessRuleModel.user_id == user_id)
    else:
        stmt = stmt.where(
            AccessRuleModel.user_id.is_(None),
            AccessRuleModel.department == department,
        )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_tags(session: AsyncSession, document_id: int) -> List[str]:
    result = await session.execute(
        select(TagModel.tag).where(TagModel.document_id == document_id).order_by(TagModel.id)
    )
    return list(result.scalars().all())


async def get_tags_for(session: AsyncSession, document_ids: Sequence[int]) -> Dict[int, List[str]]:
    """Tags for many documents in one query."""
    tags: Dict[int, List[str]] = {doc_id: [] for doc_id in document_ids}
    if not document_ids:
        return tags
    result = await session.execute(
        select(TagModel.document_id, TagModel.tag)
        .where(TagModel.document_id.in_(document_ids))
        .order_by(TagModel.id)
    )
    for doc_id, tag in result.all():
        tags[doc_id].append(tag)
    return tags


async def replace_tags(session: AsyncSession, document_id: int, tags: Sequence[str]) -> None:
    await session.execute(delete(TagModel).where(TagModel.document_id == document_id))
    session.add_all(TagModel(document_id=document_id, tag=tag) for tag in tags)
    await session.flush()


async def get_version(session: AsyncSession, version_id: int) -> Optional[VersionModel]:
    result = await session.execute(select(VersionModel).where(VersionModel.id == version_id))
    return result.scalar_one_or_none()


async def max_version_number(session: AsyncSession, document_id: int) -> int:
    result = await session.execute(
        select(func.max(VersionModel.version_number)).where(VersionModel.document_id == document_id)
    )
    return result.scalar_one() or 0


async def get_folder(session: AsyncSession, folder_id: int) -> Optional[FolderModel]:
    result = await session.execute(select(FolderModel).where(FolderModel.id == folder_id))
    return result.scalar_one_or_none()


async def get_parent_id(session: AsyncSession, folder_id: int) -> Optional[int]:
    """Parent id of one folder, read without loading the whole row."""
    result = await session.execute(select(FolderModel.parent_id).where(FolderModel.id == folder_id))
    return result.scalar_one_or_none()


async def get_child_folder_ids(session: AsyncSession, parent_ids: Sequence[int]) -> List[int]:
    if not parent_ids:
        return []
    result = await session.execute(select(FolderModel.id).where(FolderModel.parent_id.in_(parent_ids)))
    return list(result.scalars().all())


async def get_document_ids_in_folders(session: AsyncSession, folder_ids: Sequence[int]) -> List[int]:
    if not folder_ids:
        return []
    result = await session.execute(select(DocumentModel.id).where(DocumentModel.folder_id.in_(folder_ids)))
    return list(result.scalars().all())


async def get_storage_keys(session: AsyncSession, document_ids: Sequence[int]) -> List[str]:
    if not document_ids:
        return []
    result = await session.execute(
        select(VersionModel.storage_key).where(VersionModel.document_id.in_(document_ids))
    )
    return list(result.scalars().all())


async def purge_documents(session: AsyncSession, document_ids: Sequence[int]) -> None:
    """Hard-delete documents and every row that hangs off them."""
    if not document_ids:
        return
    await session.execute(delete(AuditLogModel).where(AuditLogModel.document_id.in_(document_ids)))
    await session.execute(delete(CommentModel).where(CommentModel.document_id.in_(document_ids)))
    await session.execute(delete(TagModel).where(TagModel.document_id.in_(document_ids)))
    await session.execute(delete(AccessRuleModel).where(AccessRuleModel.document_id.in_(document_ids)))
    await session.execute(delete(VersionModel).where(VersionModel.document_id.in_(document_ids)))
    await session.execute(delete(DocumentModel).where(DocumentModel.id.in_(document_ids)))


async def purge_folders(session: AsyncSession, folder_ids: Sequence[int]) -> None:
    """Hard-delete folders; the caller purges their documents first."""
    if not folder_ids:
        return
    await session.execute(delete(FolderModel).where(FolderModel.id.in_(folder_ids)))
