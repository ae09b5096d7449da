"""Comment and audit log models."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .requests import Pagination


class CommentCreate(BaseModel):
    body: str = Field(..., max_length=5000)


class Comment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    user_id: int
    body: str
    created_at: datetime


class CommentListResponse(BaseModel):
    document_id: int
    comments: List[Comment]
    pagination: Pagination


class AuditEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    user_id: int
    action: str
    details: Optional[str] = None
    version_id: Optional[int] = None
    created_at: datetime


class AuditLogResponse(BaseModel):
    document_id: int
    entries: List[AuditEntry]
    pagination: Pagination
