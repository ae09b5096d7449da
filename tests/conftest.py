"""Test configuration and fixtures for Document Service."""

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from document_service.core.audit_log import AuditLog
from document_service.core.comment_manager import CommentManager
from document_service.core.document_manager import DocumentManager
from document_service.core.folder_manager import FolderManager
from document_service.core.sharing_manager import SharingManager
from document_service.core.version_manager import VersionManager
from document_service.infrastructure.database.client import DatabaseClient
from document_service.infrastructure.storage import LocalStorageProvider
from document_service.models.principal import Principal


@pytest_asyncio.fixture
async def db_client(tmp_path):
    """Database client on a fresh SQLite file (shared across connections, unlike :memory:)."""
    client = DatabaseClient(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    await client.initialize()
    yield client
    await client.close()


@pytest_asyncio.fixture
async def storage(tmp_path):
    provider = LocalStorageProvider(str(tmp_path / "objects"), "http://files.test/objects")
    await provider.initialize()
    return provider


@pytest.fixture
def managers(db_client, storage):
    """All managers wired to the same database and storage."""
    return SimpleNamespace(
        documents=DocumentManager(db_client, storage),
        versions=VersionManager(db_client, storage),
        folders=FolderManager(db_client, storage),
        sharing=SharingManager(db_client),
        comments=CommentManager(db_client),
        audit=AuditLog(db_client),
    )


@pytest.fixture
def owner():
    """Finance employee who creates most test documents."""
    return Principal(id=1, department="finance")


@pytest.fixture
def colleague():
    """Same department as the owner, no explicit rules."""
    return Principal(id=2, department="finance")


@pytest.fixture
def outsider():
    """Different department."""
    return Principal(id=3, department="hr")


@pytest.fixture
def admin():
    return Principal(id=99, department="it", is_admin=True)


@pytest_asyncio.fixture
async def async_client(managers, db_client, storage):
    """HTTP client against the app with managers installed directly.

    ASGITransport does not run the lifespan, so the managers are set here.
    """
    from document_service import main

    main.install_managers(db_client, storage)
    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
