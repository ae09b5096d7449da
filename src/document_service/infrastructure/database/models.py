"""SQLAlchemy ORM models for folders, documents and their metadata."""

from datetime import datetime, timezone
from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FolderModel(Base):
    """Folder in the document tree.

    parent_id is a plain self-reference; the tree is owned by the table, so
    no relationship() is declared and walks are done explicitly.
    """
    __tablename__ = "folders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("folders.id"), nullable=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    is_public = Column(Boolean, nullable=False, default=False)
    is_departmental = Column(Boolean, nullable=False, default=False)
    department = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<FolderModel(id={self.id}, name={self.name}, parent_id={self.parent_id})>"


class DocumentModel(Base):
    """Document metadata. File bytes live in object storage."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False, index=True)
    description = Column(Text, nullable=True)
    original_file_name = Column(String(500), nullable=True)
    owner_id = Column(Integer, nullable=False, index=True)
    folder_id = Column(Integer, ForeignKey("folders.id"), nullable=True, index=True)
    is_public = Column(Boolean, nullable=False, default=False)
    is_departmental = Column(Boolean, nullable=False, default=False)
    department = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    # No FK: versions already reference documents, and the pointer is only
    # ever written in the same transaction as the version row it names.
    current_version_id = Column(Integer, nullable=True, index=True)
    current_version_number = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<DocumentModel(id={self.id}, title={self.title})>"


class VersionModel(Base):
    """Immutable file version of a document."""
    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_versions_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    storage_key = Column(String(1024), nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    mime_type = Column(String(255), nullable=True)
    uploaded_by = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<VersionModel(id={self.id}, document_id={self.document_id}, v{self.version_number})>"


class AccessRuleModel(Base):
    """Explicit grant to a single user or a whole department."""
    __tablename__ = "document_access"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (department IS NULL)",
            name="ck_document_access_single_target",
        ),
        CheckConstraint(
            "access_level IN ('view', 'edit', 'manage')",
            name="ck_document_access_level",
        ),
        UniqueConstraint("document_id", "user_id", name="uq_document_access_user"),
        UniqueConstraint("document_id", "department", name="uq_document_access_department"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False, index=True)
    access_level = Column(String(20), nullable=False)
    user_id = Column(Integer, nullable=True, index=True)
    department = Column(String(100), nullable=True, index=True)
    granted_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        target = f"user={self.user_id}" if self.user_id is not None else f"department={self.department}"
        return f"<AccessRuleModel(document_id={self.document_id}, {target}, level={self.access_level})>"


class TagModel(Base):
    __tablename__ = "document_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False, index=True)
    tag = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class CommentModel(Base):
    __tablename__ = "document_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class AuditLogModel(Base):
    """Append-only audit entry. Never updated; removed only with its document."""
    __tablename__ = "document_logs"
    __table_args__ = (
        Index("ix_document_logs_document_created", "document_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False)
    user_id = Column(Integer, nullable=False)
    action = Column(String(50), nullable=False, index=True)
    details = Column(Text, nullable=True)
    version_id = Column(Integer, ForeignKey("document_versions.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
