"""Request and response models shared across endpoints."""

import math
from typing import Any, Dict
from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Pagination metadata returned with every listing."""
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=1)
    has_more: bool

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        total_pages = max(1, math.ceil(total / page_size))
        return cls(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        )


class ErrorDetail(BaseModel):
    code: str = Field(..., description="unauthorized, forbidden, not_found, invalid_input, conflict, internal")
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: str
    version: str
    database_connected: bool
    storage_provider: str


class MessageResponse(BaseModel):
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
