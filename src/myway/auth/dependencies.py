"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The gate itself
knows nothing about HTTP; this module reads the raw Authorization header
and the org hint off the request and hands them over.

- get_current_user          identity stage only (discovery routes)
- require_org(*roles)       org from {org_id} / X-Org-ID / orgId
- require_resource(kind, param, *roles)
                            org derived from a path-identified resource
"""

import functools
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.gate import AccessContext, AccessGate, ResourceRef
from myway.auth.jwt import TokenCodec, TokenConfig
from myway.auth.membership import MembershipResolver
from myway.auth.ownership import OwnershipResolver, ResourceKind, SqlEntityLookup
from myway.auth.sessions import Identity, SessionManager
from myway.config import settings
from myway.db.engine import get_db
from myway.db.models import Role

STAFF = (Role.TEACHER, Role.ORGANIZER)


@functools.lru_cache(maxsize=1)
def get_codec() -> TokenCodec:
    """Built once from settings; immutable afterwards."""
    return TokenCodec(TokenConfig.from_settings(settings))


def get_session_manager(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_codec),
) -> SessionManager:
    return SessionManager(db, codec, bcrypt_rounds=settings.bcrypt_rounds)


def get_gate(
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> AccessGate:
    return AccessGate(
        sessions=sessions,
        memberships=MembershipResolver(db),
        ownership=OwnershipResolver(SqlEntityLookup(db)),
    )


async def get_current_user(
    authorization: Optional[str] = Header(None),
    gate: AccessGate = Depends(get_gate),
) -> Identity:
    """Identity stage: 401 unless a valid access token is presented."""
    return gate.identify(authorization)


def _roles(roles: tuple[Role, ...]) -> frozenset[Role] | None:
    return frozenset(roles) if roles else None


def require_org(*roles: Role):
    """Gate on an org named by path, X-Org-ID header or orgId query. Empty roles = any member."""
    allowed = _roles(roles)

    async def dependency(
        request: Request,
        authorization: Optional[str] = Header(None),
        x_org_id: Optional[str] = Header(None),
        gate: AccessGate = Depends(get_gate),
    ) -> AccessContext:
        hint = (
            request.path_params.get("org_id")
            or x_org_id
            or request.query_params.get("orgId")
        )
        return await gate.authorize(authorization, org_hint=hint, required_roles=allowed)

    return dependency


def require_resource(kind: ResourceKind, param: str, *roles: Role):
    """Gate on the org that owns the resource named by path parameter `param`."""
    allowed = _roles(roles)

    async def dependency(
        request: Request,
        authorization: Optional[str] = Header(None),
        gate: AccessGate = Depends(get_gate),
    ) -> AccessContext:
        # Identity first: unauthenticated callers never reach the resource lookup.
        identity = gate.identify(authorization)
        ref = ResourceRef(kind=kind, id=request.path_params.get(param, ""))
        return await gate.authorize_identity(identity, resource=ref, required_roles=allowed)

    return dependency
