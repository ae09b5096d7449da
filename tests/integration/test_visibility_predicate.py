"""The SQL visibility predicate must admit exactly the documents the resolver
resolves above none, for every combination of flags and rules."""

import itertools

import pytest
from sqlalchemy import select

from document_service.core.access_resolver import (
    AccessLevel,
    build_folder_visibility_predicate,
    build_visibility_predicate,
    resolve_document_access,
    resolve_folder_access,
)
from document_service.infrastructure.database.models import AccessRuleModel, DocumentModel, FolderModel
from document_service.models.principal import Principal

PRINCIPALS = [
    Principal(id=2, department="finance"),
    Principal(id=3, department="hr"),
    Principal(id=4),
    Principal(id=5, department="finance", is_admin=True),
]

RULE_SHAPES = [
    (),
    ((2, None, "view"),),
    ((None, "finance", "edit"),),
    ((None, "hr", "manage"),),
    ((4, None, "view"), (None, "hr", "view")),
    ((7, None, "manage"),),
]


async def seed_documents(db_client):
    """One document per owner/public/departmental/department/rules combination."""
    rules_by_document = {}
    combos = itertools.product(
        (1, 2), (False, True), (False, True), ("finance", "hr", ""), RULE_SHAPES
    )
    async with db_client.transaction() as session:
        for owner_id, is_public, is_departmental, department, rule_shape in combos:
            document = DocumentModel(
                title=f"doc-{owner_id}-{is_public}-{is_departmental}-{department}",
                owner_id=owner_id,
                is_public=is_public,
                is_departmental=is_departmental,
                department=department,
                status="active",
            )
            session.add(document)
            await session.flush()
            rules = [
                AccessRuleModel(document_id=document.id, user_id=user_id, department=dept, access_level=level)
                for user_id, dept, level in rule_shape
            ]
            session.add_all(rules)
            rules_by_document[document.id] = (document, rules)
    return rules_by_document


@pytest.mark.integration
class TestVisibilityPredicate:

    async def test_predicate_matches_resolver(self, db_client):
        seeded = await seed_documents(db_client)
        assert len(seeded) == 2 * 2 * 2 * 3 * len(RULE_SHAPES)

        for principal in PRINCIPALS:
            async with db_client.snapshot() as session:
                result = await session.execute(
                    select(DocumentModel.id).where(build_visibility_predicate(principal))
                )
                visible = set(result.scalars().all())
            expected = {
                doc_id
                for doc_id, (document, rules) in seeded.items()
                if resolve_document_access(principal, document, rules).level is not AccessLevel.NONE
            }
            assert visible == expected, f"mismatch for {principal}"

    async def test_admin_sees_everything(self, db_client):
        seeded = await seed_documents(db_client)
        admin = Principal(id=100, is_admin=True)
        async with db_client.snapshot() as session:
            result = await session.execute(select(DocumentModel.id).where(build_visibility_predicate(admin)))
            assert set(result.scalars().all()) == set(seeded)
        for document, rules in seeded.values():
            assert resolve_document_access(admin, document, rules).level is AccessLevel.MANAGE

    async def test_folder_predicate_matches_resolver(self, db_client):
        folders = []
        async with db_client.transaction() as session:
            for owner_id, is_public, is_departmental, department in itertools.product(
                (1, 2), (False, True), (False, True), ("finance", "hr", "")
            ):
                folder = FolderModel(
                    name=f"f-{owner_id}-{is_public}-{is_departmental}-{department}",
                    owner_id=owner_id,
                    is_public=is_public,
                    is_departmental=is_departmental,
                    department=department,
                    status="active",
                )
                session.add(folder)
                folders.append(folder)

        for principal in PRINCIPALS:
            async with db_client.snapshot() as session:
                result = await session.execute(
                    select(FolderModel.id).where(build_folder_visibility_predicate(principal))
                )
                visible = set(result.scalars().all())
            expected = {
                f.id for f in folders if resolve_folder_access(principal, f).level is not AccessLevel.NONE
            }
            assert visible == expected
