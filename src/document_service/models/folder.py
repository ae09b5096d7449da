"""Folder data models."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .requests import Pagination


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[int] = Field(None, ge=1)
    is_public: bool = False
    is_departmental: bool = False


class FolderMove(BaseModel):
    parent_id: Optional[int] = Field(None, ge=1, description="New parent; null makes it a root folder")


class Folder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: Optional[int] = None
    owner_id: int
    is_public: bool
    is_departmental: bool
    department: str
    status: str
    created_at: datetime
    updated_at: datetime


class FolderListResponse(BaseModel):
    parent_id: Optional[int]
    folders: List[Folder]
    pagination: Pagination


class Breadcrumb(BaseModel):
    id: int
    name: str


class FolderPathResponse(BaseModel):
    """Names and ids from the root down to the folder itself."""
    folder_id: int
    path: List[str]
    breadcrumbs: List[Breadcrumb]
