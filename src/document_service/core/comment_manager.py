"""Comments on documents."""

import logging
from typing import Optional

from sqlalchemy import select

from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import CommentModel
from ..models.activity import Comment
from ..models.principal import Principal
from .access_resolver import AccessLevel, require
from .audit_log import AuditAction, AuditLog
from .errors import InvalidInputError, NotFoundError
from .guards import authorize_document
from .pagination import Page, normalize_paging, paginate

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


class CommentManager:
    """Business logic for document comments."""

    def __init__(self, db_client: DatabaseClient):
        self.db = db_client

    async def list_comments(
        self,
        document_id: int,
        principal: Principal,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page[Comment]:
        """List comments newest first; anyone who can view the document may read them."""
        page, page_size = normalize_paging(page, page_size)
        async with self.db.snapshot() as session:
            await authorize_document(session, principal, document_id, AccessLevel.VIEW, "list comments")
            stmt = (
                select(CommentModel)
                .where(CommentModel.document_id == document_id)
                .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
            )
            rows, pagination = await paginate(session, stmt, page, page_size)
        return Page([Comment.model_validate(row) for row in rows], pagination)

    async def add_comment(self, document_id: int, principal: Principal, body: str) -> Comment:
        body = (body or "").strip()
        if not body:
            raise InvalidInputError("Comment body must not be empty")
        if len(body) > MAX_COMMENT_LENGTH:
            raise InvalidInputError(f"Comment body exceeds {MAX_COMMENT_LENGTH} characters")

        async with self.db.transaction() as session:
            document, _ = await authorize_document(
                session, principal, document_id, AccessLevel.VIEW, "add comment", include_archived=False
            )
            comment = CommentModel(document_id=document_id, user_id=principal.id, body=body)
            session.add(comment)
            await session.flush()
            AuditLog.record(
                session, document_id, principal.id, AuditAction.COMMENT_ADDED, details=f"comment {comment.id}",
                version_id=document.current_version_id,
            )

        logger.info(f"User {principal.id} commented on document {document_id} ({comment.id})")
        return Comment.model_validate(comment)

    async def delete_comment(self, document_id: int, comment_id: int, principal: Principal) -> None:
        """Delete a comment; its author may always do so, others need manage.

        Raises:
            NotFoundError: No such comment on this document
        """
        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.VIEW, "delete comment", include_archived=False
            )
            result = await session.execute(
                select(CommentModel).where(
                    CommentModel.id == comment_id,
                    CommentModel.document_id == document_id,
                )
            )
            comment = result.scalar_one_or_none()
            if comment is None:
                raise NotFoundError(f"Comment {comment_id} not found on document {document_id}")
            if comment.user_id != principal.id:
                require(decision, AccessLevel.MANAGE, "delete another user's comment", principal, f"document {document_id}")

            await session.delete(comment)
            AuditLog.record(
                session, document_id, principal.id, AuditAction.COMMENT_DELETED, details=f"comment {comment_id}",
                version_id=document.current_version_id,
            )

        logger.info(f"Deleted comment {comment_id} from document {document_id}")
