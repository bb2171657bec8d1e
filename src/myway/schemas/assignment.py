"""Pydantic schemas for assignments, submissions and grading."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from myway.db.models import AssignmentStatus, SubmissionStatus


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    due_at: datetime
    points: int = Field(..., ge=0)
    instructions: str = ""


class AssignmentRead(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    due_at: datetime
    points: int
    instructions: str
    status: AssignmentStatus

    model_config = {"from_attributes": True}


class SubmissionCreate(BaseModel):
    file_url: Optional[str] = None


class SubmissionRead(BaseModel):
    id: uuid.UUID
    assignment_id: uuid.UUID
    user_id: uuid.UUID
    status: SubmissionStatus
    file_url: Optional[str] = None
    submitted_at: datetime
    grade: Optional[int] = None
    feedback: Optional[str] = None

    model_config = {"from_attributes": True}


class AssignmentWithProgress(AssignmentRead):
    """Assignment as seen by one user, with their own submission."""
    progress: str
    submission: Optional[SubmissionRead] = None


class GradeRequest(BaseModel):
    score: int
    feedback: Optional[str] = None


class GradeResponse(BaseModel):
    id: uuid.UUID
    assignment_id: uuid.UUID
    user_id: uuid.UUID
    status: SubmissionStatus
    score: int
    max_points: int
    feedback: Optional[str] = None
