"""Unit tests for object storage providers."""

import pytest

from document_service.config.settings import Settings
from document_service.core.cleanup import discard_objects
from document_service.infrastructure.storage import (
    LocalStorageProvider,
    ObjectStorageProvider,
    S3StorageProvider,
    StorageError,
    get_storage_provider,
)


@pytest.mark.unit
class TestLocalStorageProvider:

    async def test_public_url(self, tmp_path):
        provider = LocalStorageProvider(str(tmp_path), "http://files.test/objects/")
        assert provider.public_url("/a/b.pdf") == "http://files.test/objects/a/b.pdf"

    async def test_delete_existing_and_missing_keys(self, tmp_path):
        provider = LocalStorageProvider(str(tmp_path / "objects"), "http://files.test")
        await provider.initialize()
        stored = tmp_path / "objects" / "docs" / "v1.pdf"
        stored.parent.mkdir(parents=True)
        stored.write_bytes(b"%PDF")

        failed = await provider.delete_objects(["docs/v1.pdf", "docs/missing.pdf"])

        assert failed == []
        assert not stored.exists()

    async def test_key_escaping_base_dir_is_reported(self, tmp_path):
        provider = LocalStorageProvider(str(tmp_path / "objects"), "http://files.test")
        await provider.initialize()
        assert await provider.delete_objects(["../outside.txt"]) == ["../outside.txt"]


class _BrokenStorage(ObjectStorageProvider):
    name = "broken"

    async def initialize(self):
        return None

    def public_url(self, storage_key):
        return storage_key

    async def delete_objects(self, storage_keys):
        raise StorageError("store unreachable")


class _DisconnectedStorage(_BrokenStorage):
    name = "disconnected"

    async def delete_objects(self, storage_keys):
        raise ConnectionError("connection reset by peer")


@pytest.mark.unit
class TestDiscardObjects:

    async def test_failures_are_returned_not_raised(self):
        failed = await discard_objects(_BrokenStorage(), ["a", "b"], "document 1")
        assert failed == ["a", "b"]

    async def test_nothing_to_delete(self):
        assert await discard_objects(_BrokenStorage(), [], "document 1") == []

    async def test_unexpected_errors_are_returned_not_raised(self):
        failed = await discard_objects(_DisconnectedStorage(), ["a"], "folder 7")
        assert failed == ["a"]


@pytest.mark.unit
class TestStorageFactory:

    def test_local_provider(self, tmp_path):
        provider = get_storage_provider(Settings(storage_provider="local", storage_local_dir=str(tmp_path)))
        assert isinstance(provider, LocalStorageProvider)

    def test_s3_provider(self):
        provider = get_storage_provider(Settings(storage_provider="S3", s3_bucket="docs", s3_region="eu-west-1"))
        assert isinstance(provider, S3StorageProvider)
        assert provider.public_url("a/b.pdf") == "https://docs.s3.eu-west-1.amazonaws.com/a/b.pdf"

    async def test_s3_bad_endpoint_reports_every_key(self):
        provider = S3StorageProvider(bucket="docs", endpoint_url="not a url")
        assert await provider.delete_objects(["a/1", "a/2"]) == ["a/1", "a/2"]

    def test_s3_requires_bucket(self):
        with pytest.raises(ValueError):
            get_storage_provider(Settings(storage_provider="s3", s3_bucket=""))

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_storage_provider(Settings(storage_provider="ftp"))
