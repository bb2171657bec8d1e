"""Discussion service — course threads and replies."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from myway.db.models import Reply, Thread
from myway.errors import NotFound


class DiscussionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_thread(
        self, course_id: uuid.UUID, user_id: uuid.UUID, title: str, body: str
    ) -> Thread:
        thread = Thread(course_id=course_id, created_by=user_id, title=title, body=body)
        self.db.add(thread)
        await self.db.commit()
        return await self.get_thread(thread.id)

    async def list_threads(self, course_id: uuid.UUID) -> list[Thread]:
        result = await self.db.execute(
            select(Thread)
            .where(Thread.course_id == course_id)
            .options(selectinload(Thread.replies))
            .order_by(Thread.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_thread(self, thread_id: uuid.UUID) -> Thread:
        result = await self.db.execute(
            select(Thread)
            .where(Thread.id == thread_id)
            .options(selectinload(Thread.replies))
            .execution_options(populate_existing=True)
        )
        thread = result.scalars().first()
        if thread is None:
            raise NotFound("Thread not found")
        return thread

    async def reply(self, thread_id: uuid.UUID, user_id: uuid.UUID, body: str) -> Reply:
        await self.get_thread(thread_id)
        reply = Reply(thread_id=thread_id, created_by=user_id, body=body)
        self.db.add(reply)
        await self.db.commit()
        return reply
