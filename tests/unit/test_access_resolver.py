"""Unit tests for the access resolver."""

from types import SimpleNamespace

import pytest

from document_service.core.access_resolver import (
    AccessDecision,
    AccessLevel,
    require,
    require_owner_or_admin,
    resolve_document_access,
    resolve_folder_access,
    rule_applies,
)
from document_service.core.errors import ForbiddenError, InvalidInputError
from document_service.models.principal import Principal


def make_document(owner_id=1, is_public=False, is_departmental=False, department="finance"):
    return SimpleNamespace(
        owner_id=owner_id,
        is_public=is_public,
        is_departmental=is_departmental,
        department=department,
    )


def user_rule(user_id, level):
    return SimpleNamespace(user_id=user_id, department=None, access_level=level)


def department_rule(department, level):
    return SimpleNamespace(user_id=None, department=department, access_level=level)


FINANCE = Principal(id=2, department="finance")
HR = Principal(id=3, department="hr")
NO_DEPARTMENT = Principal(id=4)


@pytest.mark.unit
class TestAccessLevel:
    """Ordering and parsing of access levels"""

    def test_total_order(self):
        assert AccessLevel.NONE < AccessLevel.VIEW < AccessLevel.EDIT < AccessLevel.MANAGE
        assert max([AccessLevel.VIEW, AccessLevel.MANAGE, AccessLevel.EDIT]) is AccessLevel.MANAGE

    def test_parse_grant_normalizes_case(self):
        assert AccessLevel.parse_grant(" Edit ") is AccessLevel.EDIT

    @pytest.mark.parametrize("value", ["none", "owner", "", None])
    def test_parse_grant_rejects_non_grantable(self, value):
        with pytest.raises(InvalidInputError):
            AccessLevel.parse_grant(value)


@pytest.mark.unit
class TestResolveDocumentAccess:
    """Resolution order: admin, owner, rules, implicit visibility"""

    def test_admin_always_manage(self):
        admin = Principal(id=50, is_admin=True)
        decision = resolve_document_access(admin, make_document(), [user_rule(50, "view")])
        assert decision.level is AccessLevel.MANAGE
        assert decision.is_admin
        assert decision.source == "admin"

    def test_owner_is_manage(self):
        decision = resolve_document_access(Principal(id=1), make_document(owner_id=1), [])
        assert decision.level is AccessLevel.MANAGE
        assert decision.is_owner
        assert decision.can_administer

    def test_private_document_without_rules_is_none(self):
        decision = resolve_document_access(FINANCE, make_document(), [])
        assert decision.level is AccessLevel.NONE
        assert decision.source == "none"

    def test_public_document_gives_view(self):
        decision = resolve_document_access(HR, make_document(is_public=True), [])
        assert decision.level is AccessLevel.VIEW
        assert decision.source == "public"

    def test_departmental_matches_department_only(self):
        document = make_document(is_departmental=True, department="finance")
        assert resolve_document_access(FINANCE, document, []).level is AccessLevel.VIEW
        assert resolve_document_access(HR, document, []).level is AccessLevel.NONE

    def test_principal_without_department_never_matches_departmental(self):
        document = make_document(is_departmental=True, department="")
        assert resolve_document_access(NO_DEPARTMENT, document, []).level is AccessLevel.NONE

    def test_highest_applying_rule_wins(self):
        rules = [
            user_rule(2, "view"),
            department_rule("finance", "manage"),
            department_rule("hr", "edit"),
        ]
        decision = resolve_document_access(FINANCE, make_document(), rules)
        assert decision.level is AccessLevel.MANAGE
        assert decision.source == "rule"
        assert not decision.can_administer

    def test_rules_for_others_do_not_apply(self):
        rules = [user_rule(7, "manage"), department_rule("hr", "edit")]
        assert resolve_document_access(FINANCE, make_document(), rules).level is AccessLevel.NONE

    def test_rule_overrides_implicit_view(self):
        document = make_document(is_public=True)
        decision = resolve_document_access(HR, document, [user_rule(3, "edit")])
        assert decision.level is AccessLevel.EDIT

    def test_rule_applies(self):
        assert rule_applies(user_rule(2, "view"), FINANCE)
        assert rule_applies(department_rule("finance", "view"), FINANCE)
        assert not rule_applies(department_rule("finance", "view"), NO_DEPARTMENT)


@pytest.mark.unit
class TestResolveFolderAccess:

    def test_folder_levels(self):
        folder = make_document(owner_id=1, is_departmental=True, department="finance")
        assert resolve_folder_access(Principal(id=1), folder).level is AccessLevel.MANAGE
        assert resolve_folder_access(FINANCE, folder).level is AccessLevel.VIEW
        assert resolve_folder_access(HR, folder).level is AccessLevel.NONE
        assert resolve_folder_access(Principal(id=8, is_admin=True), folder).level is AccessLevel.MANAGE


@pytest.mark.unit
class TestRequire:

    def test_require_passes_at_or_above_level(self):
        require(AccessDecision(AccessLevel.EDIT, "rule"), AccessLevel.VIEW, "read", FINANCE, "document 1")

    def test_require_raises_forbidden_below_level(self):
        with pytest.raises(ForbiddenError):
            require(AccessDecision(AccessLevel.VIEW, "public"), AccessLevel.EDIT, "edit", HR, "document 1")

    def test_delegated_manager_is_not_owner_or_admin(self):
        with pytest.raises(ForbiddenError):
            require_owner_or_admin(AccessDecision(AccessLevel.MANAGE, "rule"), "delete", FINANCE, "document 1")
        require_owner_or_admin(
            AccessDecision(AccessLevel.MANAGE, "owner", is_owner=True), "delete", FINANCE, "document 1"
        )
