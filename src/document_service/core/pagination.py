"""Page/offset helpers for listing queries."""

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from ..config.settings import get_settings
from ..models.requests import Pagination
from .errors import InvalidInputError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus its pagination metadata."""
    items: List[T]
    pagination: Pagination


def normalize_paging(page: Optional[int], page_size: Optional[int]) -> tuple[int, int]:
    """Apply defaults and bounds from settings.

    Raises:
        InvalidInputError: page or page_size below 1
    """
    settings = get_settings()
    page = 1 if page is None else page
    page_size = settings.default_page_size if page_size is None else page_size
    if page < 1:
        raise InvalidInputError("page must be >= 1")
    if page_size < 1:
        raise InvalidInputError("page_size must be >= 1")
    return page, min(page_size, settings.max_page_size)


async def paginate(
    session: AsyncSession, stmt: Select, page: int, page_size: int
) -> tuple[list, Pagination]:
    """Run ``stmt`` for one page and count the full result set.

    ``stmt`` must already carry its ordering.
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    offset = (page - 1) * page_size
    result = await session.execute(stmt.offset(offset).limit(page_size))
    rows = list(result.scalars().all())
    return rows, Pagination.build(page, page_size, total)
