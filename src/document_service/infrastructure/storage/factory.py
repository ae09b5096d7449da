"""Object Storage Provider Factory

Chooses between local filesystem and S3-compatible storage based on
configuration.
"""

import logging

from ...config.settings import Settings
from .local import LocalStorageProvider
from .provider import ObjectStorageProvider
from .s3 import S3StorageProvider

logger = logging.getLogger(__name__)


def get_storage_provider(settings: Settings) -> ObjectStorageProvider:
    """Build the object storage provider named by STORAGE_PROVIDER.

    Environment Variables:
        STORAGE_PROVIDER: "local" (default) or "s3"

        For local:
            STORAGE_LOCAL_DIR: Directory holding objects (default: "./data/objects")
            STORAGE_PUBLIC_BASE_URL: URL prefix the gateway serves objects under

        For s3:
            S3_BUCKET (required), S3_REGION, S3_ENDPOINT_URL,
            S3_ACCESS_KEY_ID, S3_SECRET_ACCESS_KEY

    Raises:
        ValueError: If the provider type is unknown or required config is missing
    """
    provider_type = settings.storage_provider.lower()
    logger.info(f"Initializing object storage provider: {provider_type}")

    if provider_type == "local":
        return LocalStorageProvider(
            base_path=settings.storage_local_dir,
            public_base_url=settings.storage_public_base_url,
        )

    if provider_type == "s3":
        return S3StorageProvider(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            public_base_url=settings.storage_public_base_url if settings.s3_endpoint_url else None,
        )

    raise ValueError(
        f"Invalid STORAGE_PROVIDER: {provider_type}. Supported providers: local, s3"
    )
