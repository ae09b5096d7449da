"""Access rules: upsert, revoke, delegation limits and visibility flags."""

import asyncio

import pytest
from sqlalchemy import func, select

from document_service.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from document_service.infrastructure.database.models import AccessRuleModel
from document_service.models.document import DocumentCreate
from document_service.models.principal import Principal
from document_service.models.sharing import GrantRequest, ShareTarget, VisibilityUpdate


async def create_private(managers, owner, title="Private"):
    detail = await managers.documents.create_document(owner, DocumentCreate(title=title))
    return detail.document.id


@pytest.mark.integration
class TestSharing:

    async def test_grant_upserts_on_natural_key(self, managers, db_client, owner, outsider):
        doc_id = await create_private(managers, owner)

        await managers.sharing.grant_access(doc_id, owner, GrantRequest(user_id=outsider.id, access_level="view"))
        rule = await managers.sharing.grant_access(
            doc_id, owner, GrantRequest(user_id=outsider.id, access_level="manage")
        )

        assert rule.access_level == "manage"
        async with db_client.snapshot() as session:
            count = (
                await session.execute(
                    select(func.count()).select_from(AccessRuleModel).where(AccessRuleModel.document_id == doc_id)
                )
            ).scalar_one()
        assert count == 1
        access = await managers.sharing.get_my_access(doc_id, outsider)
        assert access.level == "manage"
        assert access.source == "rule"

        entries = await managers.audit.list_entries(doc_id, owner)
        granted = [e.details for e in entries.items if e.action == "access_granted"]
        assert granted == [f"replaced user:{outsider.id} manage", f"created user:{outsider.id} view"]

    async def test_concurrent_grants_to_one_target_leave_one_rule(self, managers, db_client, owner):
        doc_id = await create_private(managers, owner)
        levels = ["view", "edit", "view", "edit"]

        rules = await asyncio.gather(*[
            managers.sharing.grant_access(doc_id, owner, GrantRequest(user_id=7, access_level=level))
            for level in levels
        ])

        assert len(rules) == len(levels)
        async with db_client.snapshot() as session:
            stored = (
                await session.execute(select(AccessRuleModel).where(AccessRuleModel.document_id == doc_id))
            ).scalars().all()
        assert len(stored) == 1

        entries = await managers.audit.list_entries(doc_id, owner)
        granted = [e.details for e in entries.items if e.action == "access_granted"]
        assert len(granted) == len(levels)
        assert granted[-1].startswith("created user:7 ")
        assert all(d.startswith("replaced user:7 ") for d in granted[:-1])
        assert granted[0].endswith(" " + stored[0].access_level)

    async def test_revoking_only_rule_drops_to_none(self, managers, owner, outsider):
        doc_id = await create_private(managers, owner)
        await managers.sharing.grant_access(doc_id, owner, GrantRequest(user_id=outsider.id, access_level="edit"))
        assert (await managers.sharing.get_my_access(doc_id, outsider)).level == "edit"

        await managers.sharing.revoke_access(doc_id, owner, ShareTarget(user_id=outsider.id))

        assert (await managers.sharing.get_my_access(doc_id, outsider)).level == "none"
        with pytest.raises(ForbiddenError):
            await managers.documents.get_document(doc_id, outsider)

    async def test_revoke_missing_rule_is_not_found(self, managers, owner):
        doc_id = await create_private(managers, owner)
        with pytest.raises(NotFoundError):
            await managers.sharing.revoke_access(doc_id, owner, ShareTarget(department="hr"))

    async def test_grant_validation(self, managers, owner):
        doc_id = await create_private(managers, owner)
        with pytest.raises(InvalidInputError):
            await managers.sharing.grant_access(doc_id, owner, GrantRequest(access_level="view"))
        with pytest.raises(InvalidInputError):
            await managers.sharing.grant_access(
                doc_id, owner, GrantRequest(user_id=5, department="hr", access_level="view")
            )
        with pytest.raises(InvalidInputError):
            await managers.sharing.grant_access(doc_id, owner, GrantRequest(user_id=5, access_level="none"))

    async def test_grant_requires_manage(self, managers, owner, colleague):
        doc_id = await create_private(managers, owner)
        await managers.sharing.grant_access(doc_id, owner, GrantRequest(user_id=colleague.id, access_level="edit"))

        with pytest.raises(ForbiddenError):
            await managers.sharing.grant_access(doc_id, colleague, GrantRequest(user_id=7, access_level="view"))
        with pytest.raises(ForbiddenError):
            await managers.sharing.list_shares(doc_id, colleague)

    async def test_delegated_manager_limits(self, managers, owner, colleague, admin):
        doc_id = await create_private(managers, owner)
        await managers.sharing.grant_access(
            doc_id, owner, GrantRequest(user_id=colleague.id, access_level="manage")
        )
        other_manager = Principal(id=20, department="legal")
        await managers.sharing.grant_access(
            doc_id, owner, GrantRequest(user_id=other_manager.id, access_level="manage")
        )

        # view and edit may be delegated further
        await managers.sharing.grant_access(doc_id, colleague, GrantRequest(department="hr", access_level="edit"))
        await managers.sharing.revoke_access(doc_id, colleague, ShareTarget(department="hr"))

        # manage may not be granted, downgraded or revoked by a delegate
        with pytest.raises(ForbiddenError):
            await managers.sharing.grant_access(doc_id, colleague, GrantRequest(user_id=30, access_level="manage"))
        with pytest.raises(ForbiddenError):
            await managers.sharing.grant_access(
                doc_id, colleague, GrantRequest(user_id=other_manager.id, access_level="view")
            )
        with pytest.raises(ForbiddenError):
            await managers.sharing.revoke_access(doc_id, colleague, ShareTarget(user_id=other_manager.id))

        # administrators may
        await managers.sharing.revoke_access(doc_id, admin, ShareTarget(user_id=other_manager.id))
        shares = await managers.sharing.list_shares(doc_id, owner)
        assert [(s.user_id, s.access_level) for s in shares.shares] == [(colleague.id, "manage")]

    async def test_finance_departmental_scenario(self, managers, owner, colleague, outsider):
        detail = await managers.documents.create_document(
            owner, DocumentCreate(title="Budget", is_departmental=True)
        )
        doc_id = detail.document.id
        assert detail.document.department == "finance"

        assert (await managers.sharing.get_my_access(doc_id, colleague)).level == "view"
        assert (await managers.sharing.get_my_access(doc_id, outsider)).level == "none"

        await managers.sharing.grant_access(doc_id, owner, GrantRequest(user_id=outsider.id, access_level="edit"))

        assert (await managers.sharing.get_my_access(doc_id, outsider)).level == "edit"
        assert (await managers.sharing.get_my_access(doc_id, colleague)).level == "view"

    async def test_update_visibility(self, managers, owner, outsider):
        doc_id = await create_private(managers, owner)
        assert (await managers.sharing.get_my_access(doc_id, outsider)).level == "none"

        with pytest.raises(ForbiddenError):
            await managers.sharing.update_visibility(doc_id, outsider, VisibilityUpdate(is_public=True))
        with pytest.raises(InvalidInputError):
            await managers.sharing.update_visibility(doc_id, owner, VisibilityUpdate())

        await managers.sharing.update_visibility(doc_id, owner, VisibilityUpdate(is_public=True))

        access = await managers.sharing.get_my_access(doc_id, outsider)
        assert access.level == "view"
        assert access.source == "public"
        entries = await managers.audit.list_entries(doc_id, owner)
        assert entries.items[0].action == "visibility_changed"

    async def test_access_on_missing_document_is_not_found(self, managers, owner):
        with pytest.raises(NotFoundError):
            await managers.sharing.get_my_access(12345, owner)
