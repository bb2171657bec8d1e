"""Course, module and material API routes.

Learn: Two ways of finding the tenant:
- org-scoped routes (/organizations/{org_id}/courses, /courses?orgId=)
  pass require_org; the org comes from the path, X-Org-ID or orgId
- resource routes (/courses/{course_id}, /modules/{module_id}, ...)
  pass require_resource; the gate walks the ownership chain itself

Creating a course is ORGANIZER-only. Editing course content is open to
TEACHER and ORGANIZER. Reading is open to any Active member.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.dependencies import STAFF, require_org, require_resource
from myway.auth.gate import AccessContext, parse_uuid
from myway.auth.ownership import ResourceKind
from myway.db.engine import get_db
from myway.db.models import Role
from myway.schemas.course import (
    CourseCreate,
    CourseRead,
    MaterialCreate,
    MaterialRead,
    ModuleCreate,
    ModuleRead,
    ModuleUpdate,
)
from myway.services.course_service import CourseService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> CourseService:
    return CourseService(db)


# ─── Courses ────────────────────────────────────────────

@router.post("/organizations/{org_id}/courses", response_model=CourseRead, status_code=201)
async def create_course(
    body: CourseCreate,
    ctx: AccessContext = Depends(require_org(Role.ORGANIZER)),
    svc: CourseService = Depends(_svc),
):
    return await svc.create_course(
        org_id=ctx.org_id,
        created_by=ctx.principal_id,
        code=body.code,
        title=body.title,
        description=body.description,
    )


@router.get("/organizations/{org_id}/courses", response_model=list[CourseRead])
async def list_org_courses(
    ctx: AccessContext = Depends(require_org()),
    svc: CourseService = Depends(_svc),
):
    return await svc.list_courses(ctx.org_id)


@router.get("/courses", response_model=list[CourseRead])
async def list_courses(
    ctx: AccessContext = Depends(require_org()),
    svc: CourseService = Depends(_svc),
):
    """Courses of the org named by X-Org-ID or ?orgId=."""
    return await svc.list_courses(ctx.org_id)


@router.get("/courses/{course_id}", response_model=CourseRead)
async def get_course(
    course_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id")),
    svc: CourseService = Depends(_svc),
):
    return await svc.get_course(parse_uuid(course_id, "course"))


# ─── Modules ────────────────────────────────────────────

@router.post("/courses/{course_id}/modules", response_model=ModuleRead, status_code=201)
async def create_module(
    course_id: str,
    body: ModuleCreate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id", *STAFF)),
    svc: CourseService = Depends(_svc),
):
    return await svc.create_module(
        course_id=parse_uuid(course_id, "course"),
        title=body.title,
        position=body.position,
        locked_rule=body.locked_rule,
    )


@router.get("/courses/{course_id}/modules", response_model=list[ModuleRead])
async def list_modules(
    course_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id")),
    svc: CourseService = Depends(_svc),
):
    return await svc.list_modules(parse_uuid(course_id, "course"))


@router.get("/modules/{module_id}", response_model=ModuleRead)
async def get_module(
    module_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.MODULE, "module_id")),
    svc: CourseService = Depends(_svc),
):
    return await svc.get_module(parse_uuid(module_id, "module"))


@router.put("/modules/{module_id}", response_model=ModuleRead)
async def update_module(
    module_id: str,
    body: ModuleUpdate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.MODULE, "module_id", *STAFF)),
    svc: CourseService = Depends(_svc),
):
    return await svc.update_module(
        parse_uuid(module_id, "module"), **body.model_dump(exclude_unset=True)
    )


@router.delete("/modules/{module_id}")
async def delete_module(
    module_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.MODULE, "module_id", *STAFF)),
    svc: CourseService = Depends(_svc),
):
    await svc.delete_module(parse_uuid(module_id, "module"))
    return {"deleted": True}


# ─── Materials ──────────────────────────────────────────

@router.post("/modules/{module_id}/materials", response_model=MaterialRead, status_code=201)
async def add_material(
    module_id: str,
    body: MaterialCreate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.MODULE, "module_id", *STAFF)),
    svc: CourseService = Depends(_svc),
):
    return await svc.add_material(module_id=parse_uuid(module_id, "module"), **body.model_dump())


@router.get("/modules/{module_id}/materials", response_model=list[MaterialRead])
async def list_materials(
    module_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.MODULE, "module_id")),
    svc: CourseService = Depends(_svc),
):
    return await svc.list_materials(parse_uuid(module_id, "module"))


@router.get("/materials/{material_id}", response_model=MaterialRead)
async def get_material(
    material_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.MATERIAL, "material_id")),
    svc: CourseService = Depends(_svc),
):
    return await svc.get_material(parse_uuid(material_id, "material"))
