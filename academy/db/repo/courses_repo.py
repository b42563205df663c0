from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.courses import Course
from academy.db.models.lessons import Lesson


class CoursesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, course_id: int) -> Course | None:
        return await session.get(Course, course_id)

    @staticmethod
    async def list_by_ids(session: AsyncSession, course_ids: Iterable[int]) -> list[Course]:
        ids = tuple({int(course_id) for course_id in course_ids})
        if not ids:
            return []
        stmt = select(Course).where(Course.id.in_(ids))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_modules_of(
        session: AsyncSession,
        bundle_id: int,
        *,
        include_archived: bool = False,
    ) -> list[Course]:
        stmt = select(Course).where(
            Course.kind == "MODULE",
            Course.parent_id == bundle_id,
        )
        if not include_archived:
            stmt = stmt.where(Course.status != "ARCHIVED")
        stmt = stmt.order_by(Course.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_lessons(session: AsyncSession, module_id: int) -> list[Lesson]:
        stmt = (
            select(Lesson)
            .where(Lesson.module_id == module_id)
            .order_by(Lesson.sort_order.asc(), Lesson.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_lesson(session: AsyncSession, lesson_id: int) -> Lesson | None:
        return await session.get(Lesson, lesson_id)
