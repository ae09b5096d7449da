"""Folder tree: creation rules, listing, paths, moves and cascades."""

import pytest
from sqlalchemy import select, update

from document_service.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from document_service.core.folder_manager import collect_subtree
from document_service.infrastructure.database.models import AuditLogModel, DocumentModel, FolderModel
from document_service.models.document import DocumentCreate
from document_service.models.folder import FolderCreate
from document_service.models.version import VersionCreate


@pytest.mark.integration
class TestFolderCreation:

    async def test_name_is_normalized(self, managers, owner):
        folder = await managers.folders.create_folder(owner, FolderCreate(name="  Reports "))
        assert folder.name == "reports"
        assert folder.department == "finance"
        assert folder.parent_id is None

    @pytest.mark.parametrize("name", ["public", "PUBLIC", "Finance", "   "])
    async def test_reserved_or_empty_names(self, managers, owner, name):
        with pytest.raises(InvalidInputError):
            await managers.folders.create_folder(owner, FolderCreate(name=name))

    async def test_other_departments_name_is_allowed(self, managers, owner):
        folder = await managers.folders.create_folder(owner, FolderCreate(name="hr"))
        assert folder.name == "hr"

    async def test_duplicate_sibling_conflicts(self, managers, owner, colleague):
        await managers.folders.create_folder(owner, FolderCreate(name="reports"))
        with pytest.raises(ConflictError):
            await managers.folders.create_folder(owner, FolderCreate(name="Reports"))
        # same name under another owner is fine
        await managers.folders.create_folder(colleague, FolderCreate(name="reports"))

    async def test_subfolder_requires_manage_on_parent(self, managers, owner, colleague):
        parent = await managers.folders.create_folder(owner, FolderCreate(name="team", is_departmental=True))
        with pytest.raises(ForbiddenError):
            await managers.folders.create_folder(colleague, FolderCreate(name="mine", parent_id=parent.id))
        child = await managers.folders.create_folder(owner, FolderCreate(name="mine", parent_id=parent.id))
        assert child.parent_id == parent.id

    async def test_missing_parent_is_not_found(self, managers, owner):
        with pytest.raises(NotFoundError):
            await managers.folders.create_folder(owner, FolderCreate(name="orphan", parent_id=999))


@pytest.mark.integration
class TestFolderListing:

    async def test_non_owner_sees_visible_children_only(self, managers, owner, colleague, outsider, admin):
        parent = await managers.folders.create_folder(owner, FolderCreate(name="root", is_public=True))
        await managers.folders.create_folder(owner, FolderCreate(name="open", parent_id=parent.id, is_public=True))
        await managers.folders.create_folder(
            owner, FolderCreate(name="team", parent_id=parent.id, is_departmental=True)
        )
        await managers.folders.create_folder(owner, FolderCreate(name="secret", parent_id=parent.id))

        def names(page):
            return [f.name for f in page.items]

        assert names(await managers.folders.list_children(owner, parent.id)) == ["open", "secret", "team"]
        assert names(await managers.folders.list_children(admin, parent.id)) == ["open", "secret", "team"]
        assert names(await managers.folders.list_children(colleague, parent.id)) == ["open", "team"]
        assert names(await managers.folders.list_children(outsider, parent.id)) == ["open"]

    async def test_root_listing_and_pagination(self, managers, owner, outsider):
        for name in ("a", "b", "c"):
            await managers.folders.create_folder(owner, FolderCreate(name=name))
        await managers.folders.create_folder(outsider, FolderCreate(name="elsewhere"))

        page = await managers.folders.list_children(owner, None, page=1, page_size=2)
        assert [f.name for f in page.items] == ["a", "b"]
        assert page.pagination.total == 3
        assert page.pagination.has_more is True

    async def test_listing_invisible_parent_is_forbidden(self, managers, owner, outsider):
        parent = await managers.folders.create_folder(owner, FolderCreate(name="private"))
        with pytest.raises(ForbiddenError):
            await managers.folders.list_children(outsider, parent.id)


@pytest.mark.integration
class TestFolderPaths:

    async def test_resolve_path_root_to_folder(self, managers, owner):
        a = await managers.folders.create_folder(owner, FolderCreate(name="a"))
        b = await managers.folders.create_folder(owner, FolderCreate(name="b", parent_id=a.id))
        c = await managers.folders.create_folder(owner, FolderCreate(name="c", parent_id=b.id))

        assert await managers.folders.resolve_path(c.id, owner) == ["a", "b", "c"]
        crumbs = await managers.folders.get_breadcrumbs(c.id, owner)
        assert [crumb.id for crumb in crumbs] == [a.id, b.id, c.id]

    async def test_cyclic_chain_terminates(self, managers, db_client, owner):
        a = await managers.folders.create_folder(owner, FolderCreate(name="a"))
        b = await managers.folders.create_folder(owner, FolderCreate(name="b", parent_id=a.id))
        # Written behind the service's back: A -> B -> A
        async with db_client.transaction() as session:
            await session.execute(update(FolderModel).where(FolderModel.id == a.id).values(parent_id=b.id))

        path = await managers.folders.resolve_path(a.id, owner)

        assert len(path) <= 2
        assert set(path) <= {"a", "b"}
        assert path[-1] == "a"

    async def test_move_rejects_cycles(self, managers, owner):
        a = await managers.folders.create_folder(owner, FolderCreate(name="a"))
        b = await managers.folders.create_folder(owner, FolderCreate(name="b", parent_id=a.id))
        c = await managers.folders.create_folder(owner, FolderCreate(name="c", parent_id=b.id))

        with pytest.raises(InvalidInputError):
            await managers.folders.move_folder(a.id, owner, a.id)
        with pytest.raises(InvalidInputError):
            await managers.folders.move_folder(a.id, owner, c.id)

        moved = await managers.folders.move_folder(c.id, owner, None)
        assert moved.parent_id is None
        assert await managers.folders.resolve_path(c.id, owner) == ["c"]

    async def test_subtree_depth_limit(self, managers, db_client, owner, monkeypatch):
        from document_service.config.settings import get_settings

        monkeypatch.setattr(get_settings(), "folder_max_depth", 2)
        parent = await managers.folders.create_folder(owner, FolderCreate(name="l0"))
        root_id = parent.id
        for depth in range(1, 4):
            parent = await managers.folders.create_folder(owner, FolderCreate(name=f"l{depth}", parent_id=parent.id))

        async with db_client.snapshot() as session:
            with pytest.raises(InvalidInputError):
                await collect_subtree(session, root_id)


def upload(key: str) -> VersionCreate:
    return VersionCreate(storage_key=key, size_bytes=10, mime_type="text/plain")


@pytest.mark.integration
class TestFolderCascades:

    async def test_archive_and_restore_cascade(self, managers, db_client, owner):
        top = await managers.folders.create_folder(owner, FolderCreate(name="top"))
        sub = await managers.folders.create_folder(owner, FolderCreate(name="sub", parent_id=top.id))
        d1 = await managers.documents.create_document(owner, DocumentCreate(title="one", folder_id=top.id))
        d2 = await managers.documents.create_document(owner, DocumentCreate(title="two", folder_id=sub.id))

        cascade = await managers.folders.archive_folder(top.id, owner)

        assert sorted(cascade.folder_ids) == sorted([top.id, sub.id])
        assert sorted(cascade.document_ids) == sorted([d1.document.id, d2.document.id])
        with pytest.raises(NotFoundError):
            await managers.folders.get_folder(sub.id, owner)
        with pytest.raises(NotFoundError):
            await managers.documents.get_document(d2.document.id, owner)
        async with db_client.snapshot() as session:
            archived_entries = (
                await session.execute(
                    select(AuditLogModel.document_id).where(AuditLogModel.action == "document_archived")
                )
            ).scalars().all()
        assert sorted(archived_entries) == sorted([d1.document.id, d2.document.id])

        with pytest.raises(InvalidInputError):
            await managers.folders.restore_folder(sub.id, owner)
        await managers.folders.restore_folder(top.id, owner)

        assert (await managers.folders.get_folder(sub.id, owner)).status == "active"
        assert (await managers.documents.get_document(d2.document.id, owner)).document.status == "active"

    async def test_delete_requires_ownership(self, managers, owner, colleague):
        folder = await managers.folders.create_folder(owner, FolderCreate(name="team", is_departmental=True))
        with pytest.raises(ForbiddenError):
            await managers.folders.delete_folder(folder.id, colleague)

    async def test_delete_purges_tree_and_objects(self, managers, db_client, owner, tmp_path):
        stored = tmp_path / "objects" / "files" / "a.txt"
        stored.parent.mkdir(parents=True, exist_ok=True)
        stored.write_text("hello")

        top = await managers.folders.create_folder(owner, FolderCreate(name="top"))
        sub = await managers.folders.create_folder(owner, FolderCreate(name="sub", parent_id=top.id))
        await managers.documents.create_document(
            owner, DocumentCreate(title="a", folder_id=sub.id, file=upload("files/a.txt"))
        )

        cascade = await managers.folders.delete_folder(top.id, owner)

        assert len(cascade.folder_ids) == 2
        assert len(cascade.document_ids) == 1
        assert not stored.exists()
        async with db_client.snapshot() as session:
            assert (await session.execute(select(FolderModel))).scalars().all() == []
            assert (await session.execute(select(DocumentModel))).scalars().all() == []
