"""Access decision gate.

Learn: One composed check per protected operation:

1. identify(Authorization header) → principal         else Unauthenticated (401)
2. target org: derived from a path resource via the
   ownership resolver, or taken from the org hint
   (X-Org-ID header / orgId query / {org_id} path)     else BadRequest (400)
3. Active membership in that org                       else Forbidden (403),
                                                        or NotFound (404) when
                                                        the org was derived from
                                                        a resource — non-members
                                                        can't probe existence
4. role ∈ required roles (exact match, if declared)    else Forbidden (403)
5. grant → AccessContext(principal, org, role)

There is no fallback to "any membership": without a tenant the request is
ambiguous and rejected. A resource, when given, wins over the hint.
"""

import uuid
from dataclasses import dataclass

import structlog

from myway.auth.membership import MembershipResolver, role_allowed
from myway.auth.ownership import OwnershipResolver, ResourceKind
from myway.auth.sessions import Identity, SessionManager
from myway.db.models import Role
from myway.errors import BadRequest, Forbidden, NotAMember, NotFound

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResourceRef:
    kind: ResourceKind
    id: str | uuid.UUID


@dataclass(frozen=True)
class AccessContext:
    """Request-scoped grant handed to business logic."""

    principal_id: uuid.UUID
    email: str
    org_id: uuid.UUID
    role: Role

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


def parse_uuid(value: str | uuid.UUID, what: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise BadRequest(f"Invalid {what} ID")


class AccessGate:
    def __init__(
        self,
        sessions: SessionManager,
        memberships: MembershipResolver,
        ownership: OwnershipResolver,
    ):
        self.sessions = sessions
        self.memberships = memberships
        self.ownership = ownership

    def identify(self, authorization: str | None) -> Identity:
        return self.sessions.identify(authorization)

    async def authorize(
        self,
        authorization: str | None,
        *,
        org_hint: str | uuid.UUID | None = None,
        resource: ResourceRef | None = None,
        required_roles: frozenset[Role] | None = None,
    ) -> AccessContext:
        identity = self.identify(authorization)
        return await self.authorize_identity(
            identity, org_hint=org_hint, resource=resource, required_roles=required_roles
        )

    async def authorize_identity(
        self,
        identity: Identity,
        *,
        org_hint: str | uuid.UUID | None = None,
        resource: ResourceRef | None = None,
        required_roles: frozenset[Role] | None = None,
    ) -> AccessContext:
        if resource is not None:
            resource_id = parse_uuid(resource.id, resource.kind.value)
            org_id = await self.ownership.org_of(resource.kind, resource_id)
            derived = True
        elif org_hint:
            org_id = parse_uuid(org_hint, "organization")
            derived = False
        else:
            raise BadRequest("Organization context required")

        try:
            membership = await self.memberships.resolve(identity.principal_id, org_id)
        except NotAMember:
            logger.info(
                "access.denied",
                reason="not_a_member",
                user_id=str(identity.principal_id),
                org_id=str(org_id),
            )
            if derived:
                raise NotFound(f"{resource.kind.value.capitalize()} not found")
            raise

        role = MembershipResolver.role_of(membership)
        if not role_allowed(role, required_roles):
            logger.info(
                "access.denied",
                reason="role",
                user_id=str(identity.principal_id),
                org_id=str(org_id),
                role=role.value,
            )
            raise Forbidden("Insufficient permissions")

        return AccessContext(
            principal_id=identity.principal_id,
            email=identity.email,
            org_id=org_id,
            role=role,
        )
