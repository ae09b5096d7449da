"""Conflict handling for concurrent writers."""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError

from .errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def integrity_as_conflict(operation: str):
    """Translate unique-key collisions raised inside the block into ConflictError.

    Wrap the whole transaction block so violations surfacing at commit time
    are caught as well as those raised on flush.
    """
    try:
        yield
    except IntegrityError as e:
        logger.info(f"Integrity conflict during {operation}: {e.orig}")
        raise ConflictError(f"Concurrent update during {operation}") from e


async def retry_on_conflict(operation: Callable[[], Awaitable[T]], description: str) -> T:
    """Run ``operation``; on ConflictError run it once more with fresh data."""
    try:
        return await operation()
    except ConflictError:
        logger.info(f"Retrying {description} after conflict")
        return await operation()
