"""Document data models."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .requests import Pagination
from .version import Version, VersionCreate, VersionResponse


class DocumentBase(BaseModel):
    """Base document model with common fields."""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)


class DocumentCreate(DocumentBase):
    """Model for creating a new document, optionally with its first file."""
    folder_id: Optional[int] = Field(None, ge=1)
    is_public: bool = False
    is_departmental: bool = False
    tags: List[str] = Field(default_factory=list)
    file: Optional[VersionCreate] = Field(None, description="First version, stored atomically with the document")


class DocumentUpdate(BaseModel):
    """Model for updating document metadata."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)


class TagsUpdate(BaseModel):
    tags: List[str] = Field(default_factory=list)


class DocumentMove(BaseModel):
    folder_id: Optional[int] = Field(None, ge=1, description="Target folder; null moves to root level")


class Document(DocumentBase):
    """Full document model with database fields."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    original_file_name: Optional[str] = None
    owner_id: int
    folder_id: Optional[int] = None
    is_public: bool
    is_departmental: bool
    department: str
    status: str
    current_version_id: Optional[int] = None
    current_version_number: int = 0
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class DocumentDetail(BaseModel):
    """Document together with what the caller may do with it."""
    document: Document
    current_version: Optional[Version] = None
    access_level: str


class DocumentResponse(BaseModel):
    """API response model for a single document."""
    id: int
    title: str
    description: Optional[str]
    original_file_name: Optional[str]
    owner_id: int
    folder_id: Optional[int]
    is_public: bool
    is_departmental: bool
    department: str
    status: str
    current_version_id: Optional[int]
    current_version_number: int
    tags: List[str]
    created_at: str
    updated_at: str
    access_level: Optional[str] = None
    current_version: Optional[VersionResponse] = None

    @classmethod
    def from_document(
        cls,
        doc: Document,
        access_level: Optional[str] = None,
        current_version: Optional[VersionResponse] = None,
    ):
        """Convert Document to DocumentResponse."""
        return cls(
            id=doc.id,
            title=doc.title,
            description=doc.description,
            original_file_name=doc.original_file_name,
            owner_id=doc.owner_id,
            folder_id=doc.folder_id,
            is_public=doc.is_public,
            is_departmental=doc.is_departmental,
            department=doc.department,
            status=doc.status,
            current_version_id=doc.current_version_id,
            current_version_number=doc.current_version_number,
            tags=doc.tags,
            created_at=doc.created_at.isoformat(),
            updated_at=doc.updated_at.isoformat(),
            access_level=access_level,
            current_version=current_version,
        )


class DocumentListResponse(BaseModel):
    """Response model for listing documents."""
    documents: List[DocumentResponse]
    pagination: Pagination
