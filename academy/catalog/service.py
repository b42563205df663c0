from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.constants import KIND_BUNDLE, KIND_MODULE
from academy.catalog.errors import CourseNotFoundError, InvalidCourseKindError, LessonNotFoundError
from academy.db.models.courses import Course
from academy.db.models.lessons import Lesson
from academy.db.repo.courses_repo import CoursesRepo


class CatalogService:
    """Read-only view over the bundle/module tree.

    The hierarchy has exactly two levels: a module points at its bundle via
    ``parent_id`` and a bundle's modules are found through that back-reference.
    """

    @staticmethod
    async def get_course(session: AsyncSession, course_id: int) -> Course:
        course = await CoursesRepo.get_by_id(session, course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    @staticmethod
    async def get_module(session: AsyncSession, module_id: int) -> Course:
        course = await CatalogService.get_course(session, module_id)
        if course.kind != KIND_MODULE:
            raise InvalidCourseKindError(module_id, expected=KIND_MODULE, actual=course.kind)
        return course

    @staticmethod
    async def get_bundle(session: AsyncSession, bundle_id: int) -> Course:
        course = await CatalogService.get_course(session, bundle_id)
        if course.kind != KIND_BUNDLE:
            raise InvalidCourseKindError(bundle_id, expected=KIND_BUNDLE, actual=course.kind)
        return course

    @staticmethod
    async def list_modules_of(
        session: AsyncSession,
        bundle_id: int,
        *,
        include_archived: bool = False,
    ) -> list[Course]:
        return await CoursesRepo.list_modules_of(
            session,
            bundle_id,
            include_archived=include_archived,
        )

    @staticmethod
    async def list_lessons(session: AsyncSession, module_id: int) -> list[Lesson]:
        return await CoursesRepo.list_lessons(session, module_id)

    @staticmethod
    async def get_lesson(session: AsyncSession, lesson_id: int) -> Lesson:
        lesson = await CoursesRepo.get_lesson(session, lesson_id)
        if lesson is None:
            raise LessonNotFoundError(lesson_id)
        return lesson
