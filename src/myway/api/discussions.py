"""Discussion API routes — threads belong to a course, replies to a thread."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from myway.auth.dependencies import require_resource
from myway.auth.gate import AccessContext, parse_uuid
from myway.auth.ownership import ResourceKind
from myway.db.engine import get_db
from myway.schemas.discussion import ReplyCreate, ReplyRead, ThreadCreate, ThreadRead
from myway.services.discussion_service import DiscussionService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> DiscussionService:
    return DiscussionService(db)


@router.post("/courses/{course_id}/threads", response_model=ThreadRead, status_code=201)
async def create_thread(
    course_id: str,
    body: ThreadCreate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id")),
    svc: DiscussionService = Depends(_svc),
):
    return await svc.create_thread(
        parse_uuid(course_id, "course"), ctx.principal_id, body.title, body.body
    )


@router.get("/courses/{course_id}/threads", response_model=list[ThreadRead])
async def list_threads(
    course_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.COURSE, "course_id")),
    svc: DiscussionService = Depends(_svc),
):
    return await svc.list_threads(parse_uuid(course_id, "course"))


@router.get("/threads/{thread_id}", response_model=ThreadRead)
async def get_thread(
    thread_id: str,
    ctx: AccessContext = Depends(require_resource(ResourceKind.THREAD, "thread_id")),
    svc: DiscussionService = Depends(_svc),
):
    return await svc.get_thread(parse_uuid(thread_id, "thread"))


@router.post("/threads/{thread_id}/replies", response_model=ReplyRead, status_code=201)
async def create_reply(
    thread_id: str,
    body: ReplyCreate,
    ctx: AccessContext = Depends(require_resource(ResourceKind.THREAD, "thread_id")),
    svc: DiscussionService = Depends(_svc),
):
    return await svc.reply(parse_uuid(thread_id, "thread"), ctx.principal_id, body.body)
