"""Best-effort removal of stored objects after their metadata is gone."""

import logging
from typing import List

from ..infrastructure.storage import ObjectStorageProvider, StorageError

logger = logging.getLogger(__name__)


async def discard_objects(storage: ObjectStorageProvider, storage_keys: List[str], context: str) -> List[str]:
    """Delete ``storage_keys`` from object storage, logging instead of raising.

    Runs after the metadata transaction has committed, so a failure here
    leaves orphaned bytes but never a dangling version row.

    Returns:
        Keys that could not be deleted
    """
    if not storage_keys:
        return []
    try:
        failed = await storage.delete_objects(storage_keys)
    except StorageError as e:
        logger.warning(f"Storage clean-up for {context} failed: {e}")
        return list(storage_keys)
    except Exception as e:
        logger.warning(f"Unexpected error cleaning up storage for {context}: {e}", exc_info=True)
        return list(storage_keys)
    if failed:
        logger.warning(f"Storage clean-up for {context} left {len(failed)} of {len(storage_keys)} objects")
    else:
        logger.info(f"Removed {len(storage_keys)} stored objects for {context}")
    return failed
