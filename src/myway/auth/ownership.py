"""Ownership resolver — which organization owns a resource.

Learn: Small pure functions walking foreign keys upward through an
abstract lookup:

    Course.org_id
    Module → Course,  Material → Module → Course
    Assignment → Course,  Submission → Assignment → Course
    Thread → Course

Any missing link raises NotFound. The gate surfaces that as a 404:
from the requester's standpoint the resource does not exist.

The lookup is a protocol so tests can resolve chains from a dict
without a database.
"""

import enum
import uuid
from typing import Protocol, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from myway.db.models import Assignment, Course, Material, Module, Submission, Thread
from myway.errors import NotFound, StorageError

logger = structlog.get_logger()

T = TypeVar("T")


class EntityLookup(Protocol):
    async def get(self, model: type[T], ident: uuid.UUID) -> T | None: ...


class SqlEntityLookup:
    """EntityLookup over an AsyncSession (identity-map aware)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, model, ident):
        try:
            return await self.db.get(model, ident)
        except SQLAlchemyError as e:
            logger.error("storage.entity_lookup_failed", model=model.__name__, error=str(e))
            raise StorageError() from e


class ResourceKind(str, enum.Enum):
    COURSE = "course"
    MODULE = "module"
    MATERIAL = "material"
    ASSIGNMENT = "assignment"
    SUBMISSION = "submission"
    THREAD = "thread"


async def _load(lookup: EntityLookup, model: type[T], ident: uuid.UUID, what: str) -> T:
    row = await lookup.get(model, ident)
    if row is None:
        raise NotFound(f"{what.capitalize()} not found")
    return row


async def org_of_course(lookup: EntityLookup, course_id: uuid.UUID) -> uuid.UUID:
    course = await _load(lookup, Course, course_id, "course")
    return course.org_id


async def org_of_module(lookup: EntityLookup, module_id: uuid.UUID) -> uuid.UUID:
    module = await _load(lookup, Module, module_id, "module")
    return await org_of_course(lookup, module.course_id)


async def org_of_material(lookup: EntityLookup, material_id: uuid.UUID) -> uuid.UUID:
    material = await _load(lookup, Material, material_id, "material")
    return await org_of_module(lookup, material.module_id)


async def org_of_assignment(lookup: EntityLookup, assignment_id: uuid.UUID) -> uuid.UUID:
    assignment = await _load(lookup, Assignment, assignment_id, "assignment")
    return await org_of_course(lookup, assignment.course_id)


async def org_of_submission(lookup: EntityLookup, submission_id: uuid.UUID) -> uuid.UUID:
    submission = await _load(lookup, Submission, submission_id, "submission")
    return await org_of_assignment(lookup, submission.assignment_id)


async def org_of_thread(lookup: EntityLookup, thread_id: uuid.UUID) -> uuid.UUID:
    thread = await _load(lookup, Thread, thread_id, "thread")
    return await org_of_course(lookup, thread.course_id)


_RESOLVERS = {
    ResourceKind.COURSE: org_of_course,
    ResourceKind.MODULE: org_of_module,
    ResourceKind.MATERIAL: org_of_material,
    ResourceKind.ASSIGNMENT: org_of_assignment,
    ResourceKind.SUBMISSION: org_of_submission,
    ResourceKind.THREAD: org_of_thread,
}


class OwnershipResolver:
    def __init__(self, lookup: EntityLookup):
        self.lookup = lookup

    async def org_of(self, kind: ResourceKind, ident: uuid.UUID) -> uuid.UUID:
        return await _RESOLVERS[kind](self.lookup, ident)
