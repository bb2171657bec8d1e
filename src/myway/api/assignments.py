"""Assignment and submission API routes.

Learn: Grading is checked twice. require_resource derives the org from
the submission and demands TEACHER or ORGANIZER, then
AssignmentService.grade re-checks the submission's course against
that org. A teacher of another org gets the same 404 as a bad id.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.dependencies import STAFF, require_resource
from myway.auth.gate import AccessContext, parse_uuid
from myway.auth.ownership import ResourceKind
from myway.db.engine import get_db
from myway.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentWithProgress,
    GradeRequest,
    GradeResponse,
    SubmissionCreate,
    SubmissionRead,
)
from myway.services.assignment_service import AssignmentService, progress_status

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> AssignmentService:
    return AssignmentService(db)


# ─── Assignments ────────────────────────────────────────

@router.post("/courses/{course_id}/assignments", response_model=AssignmentRead, status_code=201)
async def create_assignment(
    course_id: str,
    body: AssignmentCreate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id", *STAFF)),
    svc: AssignmentService = Depends(_svc),
):
    return await svc.create_assignment(
        course_id=parse_uuid(course_id, "course"),
        title=body.title,
        due_at=body.due_at,
        points=body.points,
        instructions=body.instructions,
    )


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentWithProgress])
async def list_assignments(
    course_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id")),
    svc: AssignmentService = Depends(_svc),
):
    """Active assignments, each with the caller's own submission status."""
    rows = await svc.list_for_course(parse_uuid(course_id, "course"), ctx.principal_id)
    return [
        AssignmentWithProgress(
            **AssignmentRead.model_validate(a).model_dump(),
            progress=progress_status(s),
            submission=SubmissionRead.model_validate(s) if s else None,
        )
        for a, s in rows
    ]


@router.get("/assignments/{assignment_id}", response_model=AssignmentRead)
async def get_assignment(
    assignment_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.ASSIGNMENT, "assignment_id")),
    svc: AssignmentService = Depends(_svc),
):
    return await svc.get_assignment(parse_uuid(assignment_id, "assignment"))


@router.post("/assignments/{assignment_id}/submit", response_model=SubmissionRead)
async def submit_assignment(
    assignment_id: str,
    body: SubmissionCreate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.ASSIGNMENT, "assignment_id")),
    svc: AssignmentService = Depends(_svc),
):
    """Submit (201) or re-submit (200) the caller's own work."""
    submission, created = await svc.submit(
        parse_uuid(assignment_id, "assignment"), ctx.principal_id, body.file_url
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content=SubmissionRead.model_validate(submission).model_dump(mode="json"),
    )


# ─── Submissions ────────────────────────────────────────

@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
async def get_submission(
    submission_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.SUBMISSION, "submission_id")),
    svc: AssignmentService = Depends(_svc),
):
    return await svc.get_submission(parse_uuid(submission_id, "submission"), ctx)


@router.put("/submissions/{submission_id}/grade", response_model=GradeResponse)
async def grade_submission(
    submission_id: str,
    body: GradeRequest,
    ctx: AccessContext = Depends(
        require_resource(ResourceKind.SUBMISSION, "submission_id", *STAFF)
    ),
    svc: AssignmentService = Depends(_svc),
):
    submission, assignment = await svc.grade(
        parse_uuid(submission_id, "submission"), ctx, body.score, body.feedback
    )
    return GradeResponse(
        id=submission.id,
        assignment_id=submission.assignment_id,
        user_id=submission.user_id,
        status=submission.status,
        score=submission.grade,
        max_points=assignment.points,
        feedback=submission.feedback,
    )
