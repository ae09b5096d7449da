"""S3-compatible storage provider (AWS S3, MinIO, Linode, R2)."""

import logging
from typing import List, Optional

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .provider import ObjectStorageProvider, StorageError

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most 1000 keys per request
_DELETE_BATCH = 1000


class S3StorageProvider(ObjectStorageProvider):
    """Bucket-backed provider using aioboto3."""

    name = "s3"

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        if not bucket:
            raise ValueError("S3_BUCKET is required when STORAGE_PROVIDER=s3")
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._session = aioboto3.Session(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )
        self._config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "adaptive"},
        )

    def _client(self):
        return self._session.client("s3", endpoint_url=self.endpoint_url, config=self._config)

    async def initialize(self) -> None:
        try:
            async with self._client() as client:
                await client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to reach bucket {self.bucket}: {e}")
            raise StorageError(f"S3 initialization failed: {e}")
        logger.info(f"S3 storage ready (bucket={self.bucket}, region={self.region})")

    def public_url(self, storage_key: str) -> str:
        key = storage_key.lstrip("/")
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def delete_objects(self, storage_keys: List[str]) -> List[str]:
        failed: List[str] = []
        if not storage_keys:
            return failed

        try:
            async with self._client() as client:
                await self._delete_batches(client, storage_keys, failed)
        except (BotoCoreError, ClientError, ValueError) as e:
            logger.warning(f"S3 client unavailable for deleting {len(storage_keys)} keys: {e}")
            return list(storage_keys)
        return failed

    async def _delete_batches(self, client, storage_keys: List[str], failed: List[str]) -> None:
        for start in range(0, len(storage_keys), _DELETE_BATCH):
            batch = storage_keys[start:start + _DELETE_BATCH]
            try:
                response = await client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k.lstrip("/")} for k in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                logger.warning(f"S3 batch delete failed for {len(batch)} keys: {e}")
                failed.extend(batch)
                continue
            for error in response.get("Errors", []):
                logger.warning(f"S3 could not delete {error.get('Key')}: {error.get('Message')}")
                failed.append(error.get("Key"))
