"""Ownership resolver tests — FK chains resolved from an in-memory lookup."""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from myway.auth.ownership import OwnershipResolver, ResourceKind, SqlEntityLookup
from myway.db.models import Assignment, Course, Material, Module, Submission, Thread
from myway.errors import NotFound, StorageError


class DictLookup:
    """EntityLookup over a plain dict keyed by (model, id)."""

    def __init__(self, *rows):
        self.rows = {(type(r), r.id): r for r in rows}

    async def get(self, model, ident):
        return self.rows.get((model, ident))


def _id():
    return uuid.uuid4()


@pytest.fixture()
def chain():
    org_id = _id()
    course = Course(id=_id(), org_id=org_id, code="CS101", title="Intro", created_by=_id())
    module = Module(id=_id(), course_id=course.id, title="Week 1")
    material = Material(id=_id(), module_id=module.id, title="Slides")
    assignment = Assignment(id=_id(), course_id=course.id, title="HW1", points=10)
    submission = Submission(id=_id(), assignment_id=assignment.id, user_id=_id())
    thread = Thread(id=_id(), course_id=course.id, created_by=_id(), title="Q", body="?")
    rows = dict(
        course=course,
        module=module,
        material=material,
        assignment=assignment,
        submission=submission,
        thread=thread,
    )
    return org_id, rows


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", list(ResourceKind))
async def test_every_kind_reaches_the_owning_org(chain, kind):
    org_id, rows = chain
    resolver = OwnershipResolver(DictLookup(*rows.values()))
    assert await resolver.org_of(kind, rows[kind.value].id) == org_id


@pytest.mark.asyncio
async def test_unknown_id_is_not_found():
    resolver = OwnershipResolver(DictLookup())
    with pytest.raises(NotFound) as exc:
        await resolver.org_of(ResourceKind.COURSE, _id())
    assert exc.value.detail == "Course not found"


@pytest.mark.asyncio
async def test_broken_link_is_not_found(chain):
    """A material whose module is gone cannot be attributed to any org."""
    _, rows = chain
    resolver = OwnershipResolver(DictLookup(rows["material"], rows["course"]))
    with pytest.raises(NotFound) as exc:
        await resolver.org_of(ResourceKind.MATERIAL, rows["material"].id)
    assert exc.value.detail == "Module not found"


@pytest.mark.asyncio
async def test_submission_walks_through_assignment(chain):
    org_id, rows = chain
    resolver = OwnershipResolver(
        DictLookup(rows["submission"], rows["assignment"], rows["course"])
    )
    assert await resolver.org_of(ResourceKind.SUBMISSION, rows["submission"].id) == org_id


@pytest.mark.asyncio
async def test_sql_lookup_failure_is_storage_error(db_session, monkeypatch):
    async def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(db_session, "get", broken_get)
    resolver = OwnershipResolver(SqlEntityLookup(db_session))
    with pytest.raises(StorageError):
        await resolver.org_of(ResourceKind.COURSE, _id())
