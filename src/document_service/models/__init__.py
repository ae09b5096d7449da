"""Data models for Document Service."""

from .activity import AuditEntry, AuditLogResponse, Comment, CommentCreate, CommentListResponse
from .document import (
    Document,
    DocumentCreate,
    DocumentDetail,
    DocumentListResponse,
    DocumentMove,
    DocumentResponse,
    DocumentUpdate,
    TagsUpdate,
)
from .folder import Breadcrumb, Folder, FolderCreate, FolderListResponse, FolderMove, FolderPathResponse
from .principal import Principal
from .requests import ErrorResponse, HealthResponse, MessageResponse, Pagination
from .sharing import AccessResponse, AccessRule, GrantRequest, ShareListResponse, ShareTarget, VisibilityUpdate
from .version import SetCurrentVersionRequest, Version, VersionCreate, VersionListResponse, VersionResponse

__all__ = [
    "AuditEntry",
    "AuditLogResponse",
    "Comment",
    "CommentCreate",
    "CommentListResponse",
    "Document",
    "DocumentCreate",
    "DocumentDetail",
    "DocumentListResponse",
    "DocumentMove",
    "DocumentResponse",
    "DocumentUpdate",
    "TagsUpdate",
    "Breadcrumb",
    "Folder",
    "FolderCreate",
    "FolderListResponse",
    "FolderMove",
    "FolderPathResponse",
    "Principal",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "Pagination",
    "AccessResponse",
    "AccessRule",
    "GrantRequest",
    "ShareListResponse",
    "ShareTarget",
    "VisibilityUpdate",
    "SetCurrentVersionRequest",
    "Version",
    "VersionCreate",
    "VersionListResponse",
    "VersionResponse",
]
