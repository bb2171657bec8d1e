"""Pydantic schemas for courses, modules and materials."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from myway.db.models import MaterialType


# ─── Courses ────────────────────────────────────────────

class CourseCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""


class CourseRead(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    code: str
    title: str
    description: str
    created_by: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


# ─── Modules ────────────────────────────────────────────

class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    position: int = Field(default=0, ge=0)
    locked_rule: Optional[str] = None


class ModuleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    position: Optional[int] = Field(None, ge=0)
    locked_rule: Optional[str] = None


class ModuleRead(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    position: int
    locked_rule: Optional[str] = None

    model_config = {"from_attributes": True}


# ─── Materials ──────────────────────────────────────────

class MaterialCreate(BaseModel):
    type: MaterialType
    title: str = Field(..., min_length=1, max_length=200)
    source_url: Optional[str] = None
    file_url: Optional[str] = None
    transcript_text: Optional[str] = None


class MaterialRead(BaseModel):
    id: uuid.UUID
    module_id: uuid.UUID
    type: MaterialType
    title: str
    source_url: Optional[str] = None
    file_url: Optional[str] = None
    transcript_text: Optional[str] = None

    model_config = {"from_attributes": True}
