"""Access resolution for documents and folders.

This module is the only place that decides who may see or change what.
``resolve_document_access`` / ``resolve_folder_access`` answer for a single
row; ``build_visibility_predicate`` / ``build_folder_visibility_predicate``
express the same rules as SQL filters for listing queries. The two must agree
on the none / not-none boundary for every combination of flags and rules.

Rules, in order:

1. organization administrators resolve to ``manage``;
2. the owner resolves to ``manage``;
3. otherwise the maximum level over the explicit rules that apply
   (rule targets the principal, or the principal's department);
4. with no applying rule, a public document, or a departmental document of the
   principal's department, resolves to ``view``;
5. anything else is ``none``.

Folders carry no explicit rules: steps 1, 2 and 4 only.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from sqlalchemy import and_, exists, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from ..infrastructure.database.models import AccessRuleModel, DocumentModel, FolderModel
from ..models.principal import Principal
from .errors import ForbiddenError, InvalidInputError

logger = logging.getLogger(__name__)


class AccessLevel(str, Enum):
    """Effective access level, totally ordered by rank."""
    NONE = "none"
    VIEW = "view"
    EDIT = "edit"
    MANAGE = "manage"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse_grant(cls, value: Any) -> "AccessLevel":
        """Parse a level that may be stored on a rule (view, edit or manage)."""
        try:
            level = cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInputError(f"Unknown access level: {value!r}")
        if level is cls.NONE:
            raise InvalidInputError("Access rules cannot grant level 'none'")
        return level


_RANKS = {
    AccessLevel.NONE: 0,
    AccessLevel.VIEW: 1,
    AccessLevel.EDIT: 2,
    AccessLevel.MANAGE: 3,
}

GRANTABLE_LEVELS = (AccessLevel.VIEW, AccessLevel.EDIT, AccessLevel.MANAGE)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of resolving a principal against one document or folder."""
    level: AccessLevel
    source: str
    is_owner: bool = False
    is_admin: bool = False

    def allows(self, required: AccessLevel) -> bool:
        return self.level >= required

    @property
    def can_administer(self) -> bool:
        """Owner or administrator, as opposed to a delegated manager."""
        return self.is_owner or self.is_admin


def _department_matches(principal: Principal, department: Optional[str]) -> bool:
    return bool(principal.department) and department == principal.department


def rule_applies(rule: Any, principal: Principal) -> bool:
    """A rule applies when it names the principal or the principal's department."""
    if rule.user_id is not None and rule.user_id == principal.id:
        return True
    return rule.department is not None and _department_matches(principal, rule.department)


def _implicit_source(principal: Principal, resource: Any) -> Optional[str]:
    if resource.is_public:
        return "public"
    if resource.is_departmental and _department_matches(principal, resource.department):
        return "departmental"
    return None


def resolve_document_access(
    principal: Principal, document: Any, rules: Iterable[Any]
) -> AccessDecision:
    """Resolve the effective level of ``principal`` on ``document``.

    Args:
        principal: Calling identity
        document: Object exposing owner_id, is_public, is_departmental, department
        rules: Access rules stored for this document

    Returns:
        AccessDecision; pure, reads nothing beyond its arguments
    """
    is_owner = document.owner_id == principal.id
    if principal.is_admin:
        return AccessDecision(AccessLevel.MANAGE, "admin", is_owner=is_owner, is_admin=True)
    if is_owner:
        return AccessDecision(AccessLevel.MANAGE, "owner", is_owner=True)

    best = AccessLevel.NONE
    for rule in rules:
        if not rule_applies(rule, principal):
            continue
        level = AccessLevel(rule.access_level)
        if level > best:
            best = level
    if best is not AccessLevel.NONE:
        return AccessDecision(best, "rule")

    source = _implicit_source(principal, document)
    if source:
        return AccessDecision(AccessLevel.VIEW, source)
    return AccessDecision(AccessLevel.NONE, "none")


def resolve_folder_access(principal: Principal, folder: Any) -> AccessDecision:
    """Resolve the effective level of ``principal`` on ``folder`` (view or manage)."""
    is_owner = folder.owner_id == principal.id
    if principal.is_admin:
        return AccessDecision(AccessLevel.MANAGE, "admin", is_owner=is_owner, is_admin=True)
    if is_owner:
        return AccessDecision(AccessLevel.MANAGE, "owner", is_owner=True)

    source = _implicit_source(principal, folder)
    if source:
        return AccessDecision(AccessLevel.VIEW, source)
    return AccessDecision(AccessLevel.NONE, "none")


def build_visibility_predicate(principal: Principal) -> ColumnElement[bool]:
    """SQL filter over ``documents`` matching rows the principal resolves above none."""
    if principal.is_admin:
        return true()

    rule_targets = [AccessRuleModel.user_id == principal.id]
    departmental = false()
    if principal.department:
        rule_targets.append(
            and_(
                AccessRuleModel.department.is_not(None),
                AccessRuleModel.department == principal.department,
            )
        )
        departmental = and_(
            DocumentModel.is_departmental.is_(True),
            DocumentModel.department == principal.department,
        )

    has_rule = exists().where(
        AccessRuleModel.document_id == DocumentModel.id,
        or_(*rule_targets),
    )
    return or_(
        DocumentModel.owner_id == principal.id,
        DocumentModel.is_public.is_(True),
        departmental,
        has_rule,
    )


def build_folder_visibility_predicate(principal: Principal) -> ColumnElement[bool]:
    """SQL filter over ``folders`` matching rows the principal resolves above none."""
    if principal.is_admin:
        return true()

    departmental = false()
    if principal.department:
        departmental = and_(
            FolderModel.is_departmental.is_(True),
            FolderModel.department == principal.department,
        )
    return or_(
        FolderModel.owner_id == principal.id,
        FolderModel.is_public.is_(True),
        departmental,
    )


def require(
    decision: AccessDecision,
    required: AccessLevel,
    action: str,
    principal: Principal,
    resource: str,
) -> None:
    """Raise ForbiddenError unless ``decision`` meets ``required``."""
    if decision.allows(required):
        return
    logger.warning(
        f"Forbidden: user {principal.id} attempted '{action}' on {resource} "
        f"with level '{decision.level.value}' (requires '{required.value}')"
    )
    raise ForbiddenError(f"'{action}' requires {required.value} access")


def require_owner_or_admin(
    decision: AccessDecision, action: str, principal: Principal, resource: str
) -> None:
    """Raise ForbiddenError unless the principal owns the resource or is an administrator."""
    if decision.can_administer:
        return
    logger.warning(
        f"Forbidden: user {principal.id} attempted '{action}' on {resource} "
        f"without ownership"
    )
    raise ForbiddenError(f"'{action}' requires ownership or administrator rights")
