"""Assignment service — assignments, submissions, grading.

Learn: Grading is the one place with a second, resource-specific check
layered on top of the generic gate. The gate already proved the caller
is TEACHER or ORGANIZER in the org that owns the submission; grade()
re-walks submission → assignment → course and refuses unless that
course belongs to the same org and the role is still one of the two.
Students only ever see and act on their own submissions.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.gate import AccessContext
from myway.db.models import (
    Assignment,
    AssignmentStatus,
    Course,
    Role,
    Submission,
    SubmissionStatus,
)
from myway.errors import BadRequest, Forbidden, NotFound

logger = structlog.get_logger()

GRADER_ROLES = (Role.TEACHER, Role.ORGANIZER)


def progress_status(submission: Submission | None) -> str:
    """Caller-facing status of an assignment given their submission."""
    if submission is None:
        return "NOT_STARTED"
    if submission.status == SubmissionStatus.GRADED:
        return "GRADED"
    if submission.status == SubmissionStatus.SUBMITTED:
        return "SUBMITTED"
    return "IN_PROGRESS"


class AssignmentService:
    """Business logic for assignments and submissions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Assignments ────────────────────────────────────

    async def create_assignment(
        self,
        course_id: uuid.UUID,
        title: str,
        due_at: datetime,
        points: int,
        instructions: str,
    ) -> Assignment:
        assignment = Assignment(
            course_id=course_id,
            title=title,
            due_at=due_at,
            points=points,
            instructions=instructions,
            status=AssignmentStatus.ACTIVE,
        )
        self.db.add(assignment)
        await self.db.commit()
        return assignment

    async def list_for_course(
        self, course_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[tuple[Assignment, Optional[Submission]]]:
        """Active assignments by due date, each paired with the caller's submission."""
        result = await self.db.execute(
            select(Assignment)
            .where(
                Assignment.course_id == course_id,
                Assignment.status == AssignmentStatus.ACTIVE,
            )
            .order_by(Assignment.due_at)
        )
        assignments = list(result.scalars().all())
        if not assignments:
            return []

        subs = await self.db.execute(
            select(Submission).where(
                Submission.user_id == user_id,
                Submission.assignment_id.in_([a.id for a in assignments]),
            )
        )
        by_assignment = {s.assignment_id: s for s in subs.scalars().all()}
        return [(a, by_assignment.get(a.id)) for a in assignments]

    async def get_assignment(self, assignment_id: uuid.UUID) -> Assignment:
        assignment = await self.db.get(Assignment, assignment_id)
        if assignment is None:
            raise NotFound("Assignment not found")
        return assignment

    # ─── Submissions ────────────────────────────────────

    async def submit(
        self,
        assignment_id: uuid.UUID,
        user_id: uuid.UUID,
        file_url: Optional[str] = None,
    ) -> tuple[Submission, bool]:
        """Create or re-submit the caller's own submission. Returns (submission, created)."""
        await self.get_assignment(assignment_id)

        result = await self.db.execute(
            select(Submission).where(
                Submission.assignment_id == assignment_id,
                Submission.user_id == user_id,
            )
        )
        existing = result.scalars().first()
        now = datetime.now(timezone.utc)
        if existing is not None:
            existing.status = SubmissionStatus.SUBMITTED
            existing.submitted_at = now
            if file_url is not None:
                existing.file_url = file_url
            await self.db.commit()
            return existing, False

        submission = Submission(
            assignment_id=assignment_id,
            user_id=user_id,
            status=SubmissionStatus.SUBMITTED,
            submitted_at=now,
            file_url=file_url,
        )
        self.db.add(submission)
        await self.db.commit()
        return submission, True

    async def get_submission(self, submission_id: uuid.UUID, ctx: AccessContext) -> Submission:
        submission = await self.db.get(Submission, submission_id)
        if submission is None:
            raise NotFound("Submission not found")
        if submission.user_id != ctx.principal_id and not ctx.has_role(*GRADER_ROLES):
            raise Forbidden("You can only view your own submissions")
        return submission

    async def grade(
        self,
        submission_id: uuid.UUID,
        ctx: AccessContext,
        score: int,
        feedback: Optional[str] = None,
    ) -> tuple[Submission, Assignment]:
        row = (
            await self.db.execute(
                select(Submission, Assignment, Course)
                .join(Assignment, Assignment.id == Submission.assignment_id)
                .join(Course, Course.id == Assignment.course_id)
                .where(Submission.id == submission_id)
            )
        ).first()
        if row is None:
            raise NotFound("Submission not found")
        submission, assignment, course = row

        if course.org_id != ctx.org_id:
            raise NotFound("Submission not found")
        if not ctx.has_role(*GRADER_ROLES):
            raise Forbidden("Only teachers or organizers can grade submissions")

        if score < 0:
            raise BadRequest("Score must be >= 0")
        if score > assignment.points:
            raise BadRequest("Score cannot exceed assignment max points")

        submission.status = SubmissionStatus.GRADED
        submission.grade = score
        cleaned = (feedback or "").strip()
        submission.feedback = cleaned or None
        await self.db.commit()
        logger.info(
            "submission.graded",
            submission_id=str(submission.id),
            grader_id=str(ctx.principal_id),
        )
        return submission, assignment
