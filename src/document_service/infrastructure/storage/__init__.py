"""Object storage infrastructure.

The service stores only keys; bytes live in one of:
- Local filesystem (development and tests)
- S3-compatible bucket
"""

from .factory import get_storage_provider
from .provider import ObjectStorageProvider, StorageError
from .local import LocalStorageProvider
from .s3 import S3StorageProvider

__all__ = [
    "get_storage_provider",
    "ObjectStorageProvider",
    "StorageError",
    "LocalStorageProvider",
    "S3StorageProvider",
]
