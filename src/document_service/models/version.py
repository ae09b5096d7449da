"""Document version models."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class VersionCreate(BaseModel):
    """Metadata of a file already placed in object storage."""
    storage_key: str = Field(..., min_length=1, max_length=1024)
    size_bytes: int = Field(..., ge=0)
    mime_type: Optional[str] = Field(None, max_length=255)
    original_file_name: Optional[str] = Field(None, max_length=500)


class Version(BaseModel):
    """Immutable version row."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    version_number: int
    storage_key: str
    size_bytes: int
    mime_type: Optional[str] = None
    uploaded_by: int
    created_at: datetime


class VersionResponse(BaseModel):
    """API response model for a single version."""
    id: int
    document_id: int
    version_number: int
    storage_key: str
    public_url: str
    size_bytes: int
    mime_type: Optional[str]
    uploaded_by: int
    is_current: bool
    created_at: str

    @classmethod
    def from_version(cls, version: Version, public_url: str, is_current: bool):
        return cls(
            id=version.id,
            document_id=version.document_id,
            version_number=version.version_number,
            storage_key=version.storage_key,
            public_url=public_url,
            size_bytes=version.size_bytes,
            mime_type=version.mime_type,
            uploaded_by=version.uploaded_by,
            is_current=is_current,
            created_at=version.created_at.isoformat(),
        )


class SetCurrentVersionRequest(BaseModel):
    version_id: int = Field(..., ge=1)


class VersionListResponse(BaseModel):
    document_id: int
    current_version_id: Optional[int]
    versions: List[VersionResponse]
