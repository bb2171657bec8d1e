"""Access decision gate tests — composition order and denial mapping.

Learn: The gate only talks to three collaborators, so each is faked
here: identify() returns a fixed identity, memberships come from a dict,
and ownership resolves from DictLookup (see test_ownership.py).
"""

import uuid
from types import SimpleNamespace

import pytest

from myway.auth.gate import AccessGate, ResourceRef, parse_uuid
from myway.auth.ownership import OwnershipResolver, ResourceKind
from myway.auth.sessions import Identity
from myway.db.models import Course, Role
from myway.errors import BadRequest, Forbidden, NotAMember, NotFound, Unauthenticated

from test_ownership import DictLookup

USER = uuid.uuid4()
ORG_A = uuid.uuid4()
ORG_B = uuid.uuid4()
STAFF = frozenset({Role.TEACHER, Role.ORGANIZER})


class FakeSessions:
    def identify(self, authorization):
        if authorization != "Bearer good":
            raise Unauthenticated()
        return Identity(principal_id=USER, email="u@myway.io")


class FakeMemberships:
    def __init__(self, roles):
        self.roles = roles
        self.calls = 0

    async def resolve(self, user_id, org_id):
        self.calls += 1
        if (user_id, org_id) not in self.roles:
            raise NotAMember()
        return SimpleNamespace(role=self.roles[(user_id, org_id)])


class CountingLookup(DictLookup):
    def __init__(self, *rows):
        super().__init__(*rows)
        self.calls = 0

    async def get(self, model, ident):
        self.calls += 1
        return await super().get(model, ident)


def _course(org_id):
    return Course(id=uuid.uuid4(), org_id=org_id, code="C", title="T", created_by=USER)


def _gate(roles, *rows):
    lookup = CountingLookup(*rows)
    memberships = FakeMemberships(roles)
    gate = AccessGate(FakeSessions(), memberships, OwnershipResolver(lookup))
    return gate, memberships, lookup


# ═══════════════════════════════════════════════════════════
# Identity stage
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_unauthenticated_never_touches_membership_or_ownership():
    course = _course(ORG_A)
    gate, memberships, lookup = _gate({(USER, ORG_A): Role.ORGANIZER}, course)
    with pytest.raises(Unauthenticated):
        await gate.authorize(
            "Bearer bad", resource=ResourceRef(ResourceKind.COURSE, course.id)
        )
    assert memberships.calls == 0
    assert lookup.calls == 0


# ═══════════════════════════════════════════════════════════
# Org hint
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_member_with_hint_is_granted():
    gate, _, _ = _gate({(USER, ORG_A): Role.STUDENT})
    ctx = await gate.authorize("Bearer good", org_hint=str(ORG_A))
    assert ctx.org_id == ORG_A
    assert ctx.role is Role.STUDENT
    assert ctx.principal_id == USER


@pytest.mark.asyncio
async def test_no_org_context_is_bad_request():
    """No fallback to 'any membership' even when the user has exactly one."""
    gate, _, _ = _gate({(USER, ORG_A): Role.STUDENT})
    with pytest.raises(BadRequest):
        await gate.authorize("Bearer good")


@pytest.mark.asyncio
async def test_malformed_hint_is_bad_request():
    gate, _, _ = _gate({})
    with pytest.raises(BadRequest):
        await gate.authorize("Bearer good", org_hint="not-a-uuid")


@pytest.mark.asyncio
async def test_non_member_by_hint_is_forbidden():
    gate, _, _ = _gate({(USER, ORG_A): Role.ORGANIZER})
    with pytest.raises(Forbidden):
        await gate.authorize("Bearer good", org_hint=str(ORG_B))


@pytest.mark.asyncio
async def test_role_outside_whitelist_is_forbidden():
    gate, _, _ = _gate({(USER, ORG_A): Role.STUDENT})
    with pytest.raises(Forbidden) as exc:
        await gate.authorize("Bearer good", org_hint=ORG_A, required_roles=STAFF)
    assert not isinstance(exc.value, NotAMember)


@pytest.mark.asyncio
async def test_organizer_does_not_imply_teacher():
    gate, _, _ = _gate({(USER, ORG_A): Role.ORGANIZER})
    with pytest.raises(Forbidden):
        await gate.authorize(
            "Bearer good", org_hint=ORG_A, required_roles=frozenset({Role.TEACHER})
        )


# ═══════════════════════════════════════════════════════════
# Resource-derived org
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_resource_org_wins_over_hint():
    course = _course(ORG_A)
    gate, _, _ = _gate({(USER, ORG_A): Role.TEACHER, (USER, ORG_B): Role.ORGANIZER}, course)
    ctx = await gate.authorize(
        "Bearer good",
        org_hint=str(ORG_B),
        resource=ResourceRef(ResourceKind.COURSE, str(course.id)),
    )
    assert ctx.org_id == ORG_A
    assert ctx.role is Role.TEACHER


@pytest.mark.asyncio
async def test_non_member_of_resource_org_sees_not_found():
    course = _course(ORG_B)
    gate, _, _ = _gate({(USER, ORG_A): Role.ORGANIZER}, course)
    with pytest.raises(NotFound) as exists:
        await gate.authorize("Bearer good", resource=ResourceRef(ResourceKind.COURSE, course.id))
    with pytest.raises(NotFound) as missing:
        await gate.authorize(
            "Bearer good", resource=ResourceRef(ResourceKind.COURSE, uuid.uuid4())
        )
    assert exists.value.detail == missing.value.detail


@pytest.mark.asyncio
async def test_malformed_resource_id_is_bad_request():
    gate, _, lookup = _gate({})
    with pytest.raises(BadRequest):
        await gate.authorize("Bearer good", resource=ResourceRef(ResourceKind.MODULE, "42"))
    assert lookup.calls == 0


def test_parse_uuid_passes_uuids_through():
    value = uuid.uuid4()
    assert parse_uuid(value, "course") is value
    assert parse_uuid(str(value), "course") == value
