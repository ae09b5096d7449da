"""Shared API dependencies."""

from typing import Optional

from fastapi import Header, Query

from ..config.settings import get_settings
from ..core.errors import UnauthorizedError
from ..models.principal import Principal


def get_principal(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_user_department: Optional[str] = Header(None, alias="X-User-Department"),
    x_user_roles: Optional[str] = Header(None, alias="X-User-Roles"),
) -> Principal:
    """Build the calling principal from gateway headers.

    Raises:
        UnauthorizedError: X-User-ID is missing or not a positive integer
    """
    if x_user_id is None or not x_user_id.strip():
        raise UnauthorizedError("X-User-ID header is required")
    try:
        user_id = int(x_user_id.strip())
    except ValueError:
        raise UnauthorizedError("X-User-ID must be a numeric user id")
    if user_id < 1:
        raise UnauthorizedError("X-User-ID must be a positive user id")

    department = x_user_department.strip() if x_user_department else None
    admin_role = get_settings().admin_role.lower()
    roles = {role.strip().lower() for role in (x_user_roles or "").split(",") if role.strip()}

    return Principal(id=user_id, department=department or None, is_admin=admin_role in roles)


def get_paging(
    page: int = Query(1, description="Page number, starting at 1"),
    page_size: Optional[int] = Query(None, description="Items per page (default 20, max 100)"),
) -> tuple:
    """Raw paging parameters; managers apply defaults and bounds."""
    return page, page_size
