"""Organization API routes.

Learn: Discovery actions (create, list mine, join) only need an identity;
they operate on Membership itself. Everything else passes the gate with
the org taken from the {org_id} path segment.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.dependencies import STAFF, get_current_user, require_org
from myway.auth.gate import AccessContext, parse_uuid
from myway.auth.sessions import Identity
from myway.db.engine import get_db
from myway.db.models import Role
from myway.errors import NotFound
from myway.schemas.organization import (
    InviteRequest,
    MemberRead,
    MembershipRead,
    OrgCreate,
    OrgRead,
    OrgWithRole,
    SwitchResponse,
)
from myway.services.organization_service import OrganizationService

router = APIRouter(prefix="/organizations")


def _svc(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    return OrganizationService(db)


def _membership_body(m) -> dict:
    return MembershipRead(
        organization_id=m.org_id, user_id=m.user_id, role=m.role, status=m.status
    ).model_dump(mode="json")


@router.post("", response_model=OrgRead, status_code=201)
async def create_org(
    body: OrgCreate,
    identity: Identity = Depends(get_current_user),
    svc: OrganizationService = Depends(_svc),
):
    """Create an organization. The caller becomes its ORGANIZER."""
    return await svc.create_org(identity.principal_id, body.name)


@router.get("", response_model=list[OrgWithRole])
async def list_my_orgs(
    identity: Identity = Depends(get_current_user),
    svc: OrganizationService = Depends(_svc),
):
    memberships = await svc.list_my_memberships(identity.principal_id)
    return [
        OrgWithRole(
            id=m.organization.id,
            name=m.organization.name,
            plan=m.organization.plan,
            role=m.role,
        )
        for m in memberships
    ]


@router.post("/{org_id}/join", response_model=MembershipRead)
async def join_org(
    org_id: str,
    identity: Identity = Depends(get_current_user),
    svc: OrganizationService = Depends(_svc),
):
    """Join as STUDENT (201), or reactivate a membership you left (200)."""
    membership, created = await svc.join(identity.principal_id, parse_uuid(org_id, "organization"))
    return JSONResponse(status_code=201 if created else 200, content=_membership_body(membership))


@router.post("/{org_id}/invite", response_model=MembershipRead)
async def invite(
    body: InviteRequest,
    ctx: AccessContext = Depends(require_org(Role.ORGANIZER)),
    svc: OrganizationService = Depends(_svc),
):
    """Grant a role to an existing user by email. ORGANIZER only."""
    membership, _user, created = await svc.invite(ctx.org_id, body.email, body.role)
    return JSONResponse(status_code=201 if created else 200, content=_membership_body(membership))


@router.post("/{org_id}/switch", response_model=SwitchResponse)
async def switch_org(
    ctx: AccessContext = Depends(require_org()),
    svc: OrganizationService = Depends(_svc),
):
    org = await svc.get_org(ctx.org_id)
    if org is None:
        raise NotFound("Organization not found")
    return SwitchResponse(organization=OrgRead.model_validate(org), role=ctx.role)


@router.post("/{org_id}/leave", response_model=MembershipRead)
async def leave_org(
    ctx: AccessContext = Depends(require_org()),
    svc: OrganizationService = Depends(_svc),
):
    membership = await svc.leave(ctx.principal_id, ctx.org_id)
    return _membership_body(membership)


@router.get("/{org_id}/members", response_model=list[MemberRead])
async def list_members(
    ctx: AccessContext = Depends(require_org(*STAFF)),
    svc: OrganizationService = Depends(_svc),
):
    return [
        MemberRead(user_id=u.id, email=u.email, name=u.name, role=m.role)
        for m, u in await svc.list_members(ctx.org_id)
    ]
