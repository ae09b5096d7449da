"""Explicit access rules (shares) and document visibility flags.

Granting and revoking need manage. A delegated manager, who holds manage
through a rule rather than as owner or administrator, may hand out or take
back view and edit only: granting manage, or changing or removing an existing
manage rule, is reserved to the owner and administrators.
"""

import logging
from typing import Optional, Tuple

from ..infrastructure.database import queries
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import AccessRuleModel
from ..models.principal import Principal
from ..models.sharing import (
    AccessResponse,
    AccessRule,
    GrantRequest,
    ShareListResponse,
    ShareTarget,
    VisibilityUpdate,
)
from .access_resolver import AccessLevel, require_owner_or_admin, resolve_document_access
from .audit_log import AuditAction, AuditLog
from .errors import InvalidInputError, NotFoundError
from .guards import authorize_document, load_document
from .retry import integrity_as_conflict, retry_on_conflict

logger = logging.getLogger(__name__)


def normalize_target(target: ShareTarget) -> Tuple[Optional[int], Optional[str]]:
    """Return (user_id, department) with exactly one of them set.

    Raises:
        InvalidInputError: Neither or both are given
    """
    department = target.department.strip() if target.department else None
    department = department or None
    if (target.user_id is None) == (department is None):
        raise InvalidInputError("Specify exactly one of user_id or department")
    return target.user_id, department


def describe_target(user_id: Optional[int], department: Optional[str]) -> str:
    return f"user:{user_id}" if user_id is not None else f"department:{department}"


class SharingManager:
    """Business logic for access rules and visibility flags."""

    def __init__(self, db_client: DatabaseClient):
        self.db = db_client

    async def grant_access(self, document_id: int, principal: Principal, grant: GrantRequest) -> AccessRule:
        """Create or replace the rule for one user or department.

        Upserts on (document, user) or (document, department). A concurrent
        grant on the same target is retried once and then becomes an update.

        Raises:
            InvalidInputError: Bad target or level
            ForbiddenError: Caller lacks manage, or is a delegated manager
                touching manage-level access
        """
        user_id, department = normalize_target(grant)
        level = AccessLevel.parse_grant(grant.access_level)
        target = describe_target(user_id, department)

        async def attempt() -> Tuple[AccessRule, bool]:
            async with integrity_as_conflict(f"grant on document {document_id}"):
                async with self.db.transaction() as session:
                    document, decision = await authorize_document(
                        session, principal, document_id, AccessLevel.MANAGE, "grant access",
                        include_archived=False,
                    )
                    if level is AccessLevel.MANAGE:
                        require_owner_or_admin(decision, "grant manage access", principal, f"document {document_id}")

                    rule = await queries.find_rule(session, document_id, user_id=user_id, department=department)
                    created = rule is None
                    if created:
                        rule = AccessRuleModel(
                            document_id=document_id,
                            user_id=user_id,
                            department=department,
                            access_level=level.value,
                            granted_by=principal.id,
                        )
                        session.add(rule)
                    else:
                        if rule.access_level == AccessLevel.MANAGE.value:
                            require_owner_or_admin(
                                decision, "change manage access", principal, f"document {document_id}"
                            )
                        rule.access_level = level.value
                        rule.granted_by = principal.id
                    await session.flush()

                    AuditLog.record(
                        session, document_id, principal.id, AuditAction.ACCESS_GRANTED,
                        details=f"{'created' if created else 'replaced'} {target} {level.value}",
                        version_id=document.current_version_id,
                    )
            return AccessRule.model_validate(rule), created

        rule, created = await retry_on_conflict(attempt, f"grant on document {document_id}")
        logger.info(
            f"{'Granted' if created else 'Updated'} {level.value} on document {document_id} to {target}"
        )
        return rule

    async def revoke_access(self, document_id: int, principal: Principal, target: ShareTarget) -> None:
        """Delete the rule for one user or department.

        Raises:
            NotFoundError: No rule exists for the target
        """
        user_id, department = normalize_target(target)
        description = describe_target(user_id, department)

        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.MANAGE, "revoke access", include_archived=False
            )
            rule = await queries.find_rule(session, document_id, user_id=user_id, department=department)
            if rule is None:
                raise NotFoundError(f"No access rule for {description} on document {document_id}")
            if rule.access_level == AccessLevel.MANAGE.value:
                require_owner_or_admin(decision, "revoke manage access", principal, f"document {document_id}")

            level = rule.access_level
            await session.delete(rule)
            AuditLog.record(
                session, document_id, principal.id, AuditAction.ACCESS_REVOKED,
                details=f"{description} {level}",
                version_id=document.current_version_id,
            )

        logger.info(f"Revoked {level} on document {document_id} from {description}")

    async def list_shares(self, document_id: int, principal: Principal) -> ShareListResponse:
        async with self.db.snapshot() as session:
            await authorize_document(session, principal, document_id, AccessLevel.MANAGE, "list shares")
            rules = await queries.get_rules(session, document_id)
        return ShareListResponse(
            document_id=document_id,
            shares=[AccessRule.model_validate(rule) for rule in rules],
        )

    async def update_visibility(
        self, document_id: int, principal: Principal, visibility: VisibilityUpdate
    ) -> AccessResponse:
        """Flip the public and/or departmental flags.

        Returns:
            The caller's access after the change
        """
        if visibility.is_public is None and visibility.is_departmental is None:
            raise InvalidInputError("Specify is_public and/or is_departmental")

        async with self.db.transaction() as session:
            document, decision = await authorize_document(
                session, principal, document_id, AccessLevel.MANAGE, "change visibility",
                include_archived=False,
            )
            if visibility.is_public is not None:
                document.is_public = visibility.is_public
            if visibility.is_departmental is not None:
                document.is_departmental = visibility.is_departmental
            await session.flush()
            details = f"is_public={document.is_public}, is_departmental={document.is_departmental}"
            AuditLog.record(
                session, document_id, principal.id, AuditAction.VISIBILITY_CHANGED,
                details=details, version_id=document.current_version_id,
            )

        logger.info(f"Changed visibility of document {document_id}: {details}")
        return AccessResponse(
            document_id=document_id,
            level=decision.level.value,
            source=decision.source,
            is_owner=decision.is_owner,
            is_admin=decision.is_admin,
        )

    async def get_my_access(self, document_id: int, principal: Principal) -> AccessResponse:
        """The caller's effective access; ``none`` is a valid answer."""
        async with self.db.snapshot() as session:
            document = await load_document(session, document_id)
            rules = await queries.get_rules(session, document_id)
            decision = resolve_document_access(principal, document, rules)
        return AccessResponse(
            document_id=document_id,
            level=decision.level.value,
            source=decision.source,
            is_owner=decision.is_owner,
            is_admin=decision.is_admin,
        )
