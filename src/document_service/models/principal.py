"""Calling identity attached to every request."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Principal(BaseModel):
    """The acting identity for one request, supplied by the gateway.

    The service trusts these values; authentication happens upstream.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Numeric employee id")
    department: Optional[str] = Field(None, description="Department name, if any")
    is_admin: bool = Field(default=False, description="Organization administrator")
