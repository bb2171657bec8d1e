"""Pydantic schemas for discussion threads and replies."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ThreadCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)


class ReplyCreate(BaseModel):
    body: str = Field(..., min_length=1)


class ReplyRead(BaseModel):
    id: uuid.UUID
    thread_id: uuid.UUID
    created_by: uuid.UUID
    body: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ThreadRead(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    created_by: uuid.UUID
    title: str
    body: str
    created_at: datetime
    replies: list[ReplyRead] = []

    model_config = {"from_attributes": True}
