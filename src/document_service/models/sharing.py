"""Access rule (share) models."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ShareTarget(BaseModel):
    """Either a single user or a whole department, never both."""
    user_id: Optional[int] = Field(None, ge=1)
    department: Optional[str] = Field(None, max_length=100)


class GrantRequest(ShareTarget):
    access_level: str = Field(..., description="view, edit or manage")


class AccessRule(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    access_level: str
    user_id: Optional[int] = None
    department: Optional[str] = None
    granted_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ShareListResponse(BaseModel):
    document_id: int
    shares: List[AccessRule]


class VisibilityUpdate(BaseModel):
    is_public: Optional[bool] = None
    is_departmental: Optional[bool] = None


class AccessResponse(BaseModel):
    """The caller's own effective access on a document."""
    document_id: int
    level: str
    source: str
    is_owner: bool
    is_admin: bool
