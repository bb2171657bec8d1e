"""Course service — courses, modules, materials.

Learn: Service layer separates business logic from HTTP routing.
Authorization has already happened by the time these run: the routes
pass an AccessContext from the gate, and every query here is scoped by
the ids the gate validated.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from myway.db.models import Course, Material, MaterialType, Module
from myway.errors import NotFound


class CourseService:
    """Business logic for course content."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Courses ────────────────────────────────────────

    async def create_course(
        self,
        org_id: uuid.UUID,
        created_by: uuid.UUID,
        code: str,
        title: str,
        description: str,
    ) -> Course:
        course = Course(
            org_id=org_id,
            code=code,
            title=title,
            description=description,
            created_by=created_by,
        )
        self.db.add(course)
        await self.db.commit()
        return course

    async def list_courses(self, org_id: uuid.UUID) -> list[Course]:
        result = await self.db.execute(
            select(Course).where(Course.org_id == org_id).order_by(Course.code)
        )
        return list(result.scalars().all())

    async def get_course(self, course_id: uuid.UUID) -> Course:
        course = await self.db.get(Course, course_id)
        if course is None:
            raise NotFound("Course not found")
        return course

    # ─── Modules ────────────────────────────────────────

    async def create_module(
        self,
        course_id: uuid.UUID,
        title: str,
        position: int,
        locked_rule: Optional[str] = None,
    ) -> Module:
        module = Module(
            course_id=course_id, title=title, position=position, locked_rule=locked_rule
        )
        self.db.add(module)
        await self.db.commit()
        return module

    async def list_modules(self, course_id: uuid.UUID) -> list[Module]:
        result = await self.db.execute(
            select(Module).where(Module.course_id == course_id).order_by(Module.position)
        )
        return list(result.scalars().all())

    async def get_module(self, module_id: uuid.UUID) -> Module:
        module = await self.db.get(Module, module_id)
        if module is None:
            raise NotFound("Module not found")
        return module

    async def update_module(self, module_id: uuid.UUID, **changes) -> Module:
        module = await self.get_module(module_id)
        for field, value in changes.items():
            if value is not None:
                setattr(module, field, value)
        await self.db.commit()
        return module

    async def delete_module(self, module_id: uuid.UUID) -> None:
        module = await self.get_module(module_id)
        for material in await self.list_materials(module_id):
            await self.db.delete(material)
        await self.db.delete(module)
        await self.db.commit()

    # ─── Materials ──────────────────────────────────────

    async def add_material(
        self,
        module_id: uuid.UUID,
        type: MaterialType,
        title: str,
        source_url: Optional[str] = None,
        file_url: Optional[str] = None,
        transcript_text: Optional[str] = None,
    ) -> Material:
        material = Material(
            module_id=module_id,
            type=type,
            title=title,
            source_url=source_url,
            file_url=file_url,
            transcript_text=transcript_text,
        )
        self.db.add(material)
        await self.db.commit()
        return material

    async def list_materials(self, module_id: uuid.UUID) -> list[Material]:
        result = await self.db.execute(
            select(Material).where(Material.module_id == module_id)
        )
        return list(result.scalars().all())

    async def get_material(self, material_id: uuid.UUID) -> Material:
        material = await self.db.get(Material, material_id)
        if material is None:
            raise NotFound("Material not found")
        return material
