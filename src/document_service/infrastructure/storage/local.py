"""Local filesystem storage provider for development and testing."""

import logging
from pathlib import Path
from typing import List

import aiofiles.os

from .provider import ObjectStorageProvider, StorageError

logger = logging.getLogger(__name__)


class LocalStorageProvider(ObjectStorageProvider):
    """Objects are files under ``base_path``; keys are relative paths."""

    name = "local"

    def __init__(self, base_path: str, public_base_url: str):
        """Initialize local storage provider.

        Args:
            base_path: Directory holding uploaded objects
            public_base_url: URL prefix the gateway serves ``base_path`` under
        """
        self.base_path = Path(base_path)
        self.public_base_url = public_base_url.rstrip("/")

    def _full_path(self, storage_key: str) -> Path:
        path = (self.base_path / storage_key.lstrip("/")).resolve()
        if self.base_path.resolve() not in path.parents:
            raise StorageError(f"Storage key escapes base directory: {storage_key}")
        return path

    async def initialize(self) -> None:
        try:
            await aiofiles.os.makedirs(self.base_path, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to prepare local storage at {self.base_path}: {e}")
            raise StorageError(f"Local storage initialization failed: {e}")
        logger.info(f"Local storage ready at {self.base_path}")

    def public_url(self, storage_key: str) -> str:
        return f"{self.public_base_url}/{storage_key.lstrip('/')}"

    async def delete_objects(self, storage_keys: List[str]) -> List[str]:
        failed = []
        for key in storage_keys:
            try:
                path = self._full_path(key)
                if await aiofiles.os.path.exists(path):
                    await aiofiles.os.remove(path)
            except (OSError, StorageError) as e:
                logger.warning(f"Failed to delete local object {key}: {e}")
                failed.append(key)
        return failed
