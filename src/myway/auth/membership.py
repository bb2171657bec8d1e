"""Membership resolver.

Learn: A membership only counts when status == Active. An Inactive row
(the user left) and no row at all (never joined) both raise NotAMember;
the caller cannot tell them apart, and neither can the client.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from myway.db.models import MembershipStatus, OrgMembership, Role
from myway.errors import NotAMember, StorageError


class MembershipResolver:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, user_id: uuid.UUID, org_id: uuid.UUID) -> OrgMembership:
        """The caller's Active membership in org_id, or NotAMember."""
        try:
            result = await self.db.execute(
                select(OrgMembership).where(
                    OrgMembership.user_id == user_id,
                    OrgMembership.org_id == org_id,
                    OrgMembership.status == MembershipStatus.ACTIVE,
                )
            )
        except SQLAlchemyError as e:
            raise StorageError() from e
        membership = result.scalars().first()
        if membership is None:
            raise NotAMember()
        return membership

    @staticmethod
    def role_of(membership: OrgMembership) -> Role:
        return membership.role


def role_allowed(role: Role, allowed: frozenset[Role] | None) -> bool:
    """Exact-match whitelist check. ORGANIZER does not imply TEACHER."""
    return allowed is None or role in allowed
