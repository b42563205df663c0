from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.errors import LessonNotFoundError
from academy.catalog.service import CatalogService
from academy.db.models.courses import Course
from academy.db.models.lessons import Lesson
from academy.entitlements.ledger import EntitlementLedger
from academy.profiles.plans import Viewer


class AccessEvaluator:
    """Answers "may this viewer see this content?".

    Order of checks: free preview, PRO plan, direct module grant, then the
    parent bundle grant. The plan check happens before any catalog or ledger
    query, so a PRO viewer is answered without touching storage.
    """

    @staticmethod
    async def _module_is_accessible(
        session: AsyncSession,
        *,
        viewer: Viewer,
        module: Course,
        now_utc: datetime,
    ) -> bool:
        if viewer.is_pro:
            return True
        if viewer.user_id is None:
            return False
        if await EntitlementLedger.has_module_grant(
            session,
            user_id=viewer.user_id,
            module_id=module.id,
            now_utc=now_utc,
        ):
            return True
        if module.parent_id is None:
            return False
        return await EntitlementLedger.has_bundle_grant(
            session,
            user_id=viewer.user_id,
            bundle_id=module.parent_id,
            now_utc=now_utc,
        )

    @staticmethod
    async def can_access_module(
        session: AsyncSession,
        *,
        viewer: Viewer,
        module_id: int,
        now_utc: datetime | None = None,
    ) -> bool:
        if viewer.is_pro:
            return True
        module = await CatalogService.get_module(session, module_id)
        return await AccessEvaluator._module_is_accessible(
            session,
            viewer=viewer,
            module=module,
            now_utc=now_utc or datetime.now(timezone.utc),
        )

    @staticmethod
    async def can_access_lesson(
        session: AsyncSession,
        *,
        viewer: Viewer,
        lesson: Lesson,
        module: Course,
        now_utc: datetime | None = None,
    ) -> bool:
        if lesson.is_free_preview:
            return True
        if lesson.module_id != module.id:
            raise LessonNotFoundError(lesson.id, module_id=module.id)
        return await AccessEvaluator._module_is_accessible(
            session,
            viewer=viewer,
            module=module,
            now_utc=now_utc or datetime.now(timezone.utc),
        )

    @staticmethod
    async def visible_lessons(
        session: AsyncSession,
        *,
        viewer: Viewer,
        module: Course,
        now_utc: datetime | None = None,
    ) -> list[Lesson]:
        lessons = await CatalogService.list_lessons(session, module.id)
        if await AccessEvaluator._module_is_accessible(
            session,
            viewer=viewer,
            module=module,
            now_utc=now_utc or datetime.now(timezone.utc),
        ):
            return lessons
        return [lesson for lesson in lessons if lesson.is_free_preview]
