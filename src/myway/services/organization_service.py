"""Organization service — creation, discovery, join, invite, leave.

Learn: These are the only operations that act on Membership itself, so
they run after the identity stage but (mostly) before any membership
exists. Invite, switch, leave and member listing go through the gate
first; the service just does the row work.

Memberships are never deleted: leaving flips status to Inactive,
re-joining or being re-invited flips it back.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from myway.db.models import MembershipStatus, Organization, OrgMembership, Role, User
from myway.errors import Conflict, NotFound

logger = structlog.get_logger()


class OrganizationService:
    """Business logic for organizations and memberships."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_org(self, creator_id: uuid.UUID, name: str) -> Organization:
        """Create an org; the creator becomes its Active ORGANIZER."""
        org = Organization(name=name, plan="Free")
        self.db.add(org)
        await self.db.flush()

        self.db.add(
            OrgMembership(
                org_id=org.id,
                user_id=creator_id,
                role=Role.ORGANIZER,
                status=MembershipStatus.ACTIVE,
            )
        )
        await self.db.commit()
        logger.info("org.created", org_id=str(org.id), user_id=str(creator_id))
        return org

    async def list_my_memberships(self, user_id: uuid.UUID) -> list[OrgMembership]:
        result = await self.db.execute(
            select(OrgMembership)
            .join(Organization, Organization.id == OrgMembership.org_id)
            .where(
                OrgMembership.user_id == user_id,
                OrgMembership.status == MembershipStatus.ACTIVE,
            )
            .order_by(Organization.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def join(self, user_id: uuid.UUID, org_id: uuid.UUID) -> tuple[OrgMembership, bool]:
        """Join as STUDENT. Returns (membership, created)."""
        if await self.db.get(Organization, org_id) is None:
            raise NotFound("Organization not found")

        existing = await self._membership(user_id, org_id)
        if existing is not None:
            if existing.status == MembershipStatus.ACTIVE:
                raise Conflict("Already a member of this organization")
            existing.status = MembershipStatus.ACTIVE
            existing.role = Role.STUDENT
            await self.db.commit()
            logger.info("org.rejoined", org_id=str(org_id), user_id=str(user_id))
            return existing, False

        membership = OrgMembership(
            org_id=org_id,
            user_id=user_id,
            role=Role.STUDENT,
            status=MembershipStatus.ACTIVE,
        )
        self.db.add(membership)
        await self.db.commit()
        logger.info("org.joined", org_id=str(org_id), user_id=str(user_id))
        return membership, True

    async def invite(
        self, org_id: uuid.UUID, email: str, role: Role
    ) -> tuple[OrgMembership, User, bool]:
        """Grant `role` in org to the user with `email`. Returns (membership, user, created)."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        user = result.scalars().first()
        if user is None:
            raise NotFound("User not found by email")

        existing = await self._membership(user.id, org_id)
        if existing is not None:
            if existing.status == MembershipStatus.ACTIVE:
                raise Conflict("User is already an active member of this organization")
            existing.status = MembershipStatus.ACTIVE
            existing.role = role
            await self.db.commit()
            logger.info("org.invited", org_id=str(org_id), user_id=str(user.id), role=role.value)
            return existing, user, False

        membership = OrgMembership(
            org_id=org_id,
            user_id=user.id,
            role=role,
            status=MembershipStatus.ACTIVE,
        )
        self.db.add(membership)
        await self.db.commit()
        logger.info("org.invited", org_id=str(org_id), user_id=str(user.id), role=role.value)
        return membership, user, True

    async def leave(self, user_id: uuid.UUID, org_id: uuid.UUID) -> OrgMembership:
        membership = await self._membership(user_id, org_id)
        if membership is None:
            raise NotFound("Membership not found")
        membership.status = MembershipStatus.INACTIVE
        await self.db.commit()
        logger.info("org.left", org_id=str(org_id), user_id=str(user_id))
        return membership

    async def get_org(self, org_id: uuid.UUID) -> Organization | None:
        return await self.db.get(Organization, org_id)

    async def list_members(self, org_id: uuid.UUID) -> list[tuple[OrgMembership, User]]:
        result = await self.db.execute(
            select(OrgMembership, User)
            .join(User, User.id == OrgMembership.user_id)
            .where(
                OrgMembership.org_id == org_id,
                OrgMembership.status == MembershipStatus.ACTIVE,
            )
            .order_by(User.name)
        )
        return [(m, u) for m, u in result.all()]

    async def _membership(self, user_id: uuid.UUID, org_id: uuid.UUID) -> OrgMembership | None:
        result = await self.db.execute(
            select(OrgMembership).where(
                OrgMembership.user_id == user_id,
                OrgMembership.org_id == org_id,
            )
        )
        return result.scalars().first()
