"""Object Storage Provider Interface

Deployment-neutral abstraction over the store that holds file bytes.
The document service never reads or writes bytes itself: uploads go
straight to the store through presigned URLs issued elsewhere, and the
service only records the resulting storage keys.

Supports:
- Local filesystem (development, self-hosted, tests)
- S3-compatible buckets (AWS S3, MinIO, Linode, R2)
"""

from abc import ABC, abstractmethod
from typing import List


class StorageError(Exception):
    """Raised by providers when the backing store cannot be reached."""


class ObjectStorageProvider(ABC):
    """Abstract base class for object storage providers.

    Provides the narrow contract the engine consumes:
    - Public URL derivation for a storage key
    - Best-effort deletion of keys after metadata is removed
    """

    name: str = "abstract"

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the provider (create directories, verify credentials).

        Raises:
            StorageError: If the store is unusable
        """
        pass

    @abstractmethod
    def public_url(self, storage_key: str) -> str:
        """Return the URL clients use to fetch ``storage_key``."""
        pass

    @abstractmethod
    async def delete_objects(self, storage_keys: List[str]) -> List[str]:
        """Delete objects by key.

        Args:
            storage_keys: Keys to delete; missing keys count as deleted

        Returns:
            Keys that could not be deleted
        """
        pass

    async def close(self) -> None:
        """Release any held clients."""
        return None
