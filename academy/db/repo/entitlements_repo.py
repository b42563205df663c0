from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.courses import Course
from academy.db.models.entitlements import Entitlement

# Only paid-for module access is credited against a bundle price; admin grants are not.
CREDITED_MODULE_GRANT_TYPES = ("MODULE_PURCHASE", "GIFT")


def _live_at(now_utc: datetime):
    return or_(Entitlement.expires_at.is_(None), Entitlement.expires_at > now_utc)


class EntitlementsRepo:
    @staticmethod
    async def has_live_grant(
        session: AsyncSession,
        *,
        user_id: int,
        scope: str,
        course_id: int,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            select(Entitlement.id)
            .where(
                Entitlement.user_id == user_id,
                Entitlement.scope == scope,
                Entitlement.course_id == course_id,
                _live_at(now_utc),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_by_active_key_for_update(
        session: AsyncSession,
        active_key: str,
    ) -> Entitlement | None:
        stmt = select(Entitlement).where(Entitlement.active_key == active_key).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, entitlement_id: int) -> Entitlement | None:
        stmt = select(Entitlement).where(Entitlement.id == entitlement_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_source_purchase_id(session: AsyncSession, purchase_id: UUID) -> Entitlement | None:
        stmt = select(Entitlement).where(Entitlement.source_purchase_id == purchase_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_owned_module_ids_under(
        session: AsyncSession,
        *,
        user_id: int,
        bundle_id: int,
        now_utc: datetime,
    ) -> set[int]:
        stmt = (
            select(Entitlement.course_id)
            .join(Course, Course.id == Entitlement.course_id)
            .where(
                Entitlement.user_id == user_id,
                Entitlement.scope == "MODULE",
                Entitlement.grant_type.in_(CREDITED_MODULE_GRANT_TYPES),
                _live_at(now_utc),
                Course.kind == "MODULE",
                Course.parent_id == bundle_id,
            )
        )
        result = await session.execute(stmt)
        return {int(course_id) for course_id in result.scalars().all()}

    @staticmethod
    async def list_live_module_parents(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> list[tuple[int, int, bool]]:
        """(module_id, bundle_id, credited) for every live ModuleScope grant.

        ``credited`` tells whether the grant counts toward an upgrade price.
        """
        stmt = (
            select(
                Course.id,
                Course.parent_id,
                Entitlement.grant_type.in_(CREDITED_MODULE_GRANT_TYPES),
            )
            .join(Entitlement, Entitlement.course_id == Course.id)
            .where(
                Entitlement.user_id == user_id,
                Entitlement.scope == "MODULE",
                _live_at(now_utc),
                Course.kind == "MODULE",
                Course.parent_id.is_not(None),
            )
            .distinct()
        )
        result = await session.execute(stmt)
        return [
            (int(module_id), int(bundle_id), bool(credited))
            for module_id, bundle_id, credited in result.all()
        ]

    @staticmethod
    async def list_live_bundle_ids(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> set[int]:
        stmt = select(Entitlement.course_id).where(
            Entitlement.user_id == user_id,
            Entitlement.scope == "BUNDLE",
            _live_at(now_utc),
        )
        result = await session.execute(stmt)
        return {int(course_id) for course_id in result.scalars().all()}

    @staticmethod
    async def list_grants(
        session: AsyncSession,
        *,
        now_utc: datetime,
        user_id: int | None = None,
        course_id: int | None = None,
        grant_type: str | None = None,
        include_expired: bool = False,
        limit: int = 200,
    ) -> list[Entitlement]:
        stmt = select(Entitlement)
        if user_id is not None:
            stmt = stmt.where(Entitlement.user_id == user_id)
        if course_id is not None:
            stmt = stmt.where(Entitlement.course_id == course_id)
        if grant_type is not None:
            stmt = stmt.where(Entitlement.grant_type == grant_type)
        if not include_expired:
            stmt = stmt.where(_live_at(now_utc))
        stmt = stmt.order_by(Entitlement.created_at.desc(), Entitlement.id.desc()).limit(max(1, int(limit)))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, entitlement: Entitlement) -> Entitlement:
        session.add(entitlement)
        await session.flush()
        return entitlement

    @staticmethod
    async def release_expired_keys(
        session: AsyncSession,
        *,
        now_utc: datetime,
        limit: int,
    ) -> int:
        resolved_limit = max(1, int(limit))
        candidate_ids = (
            select(Entitlement.id)
            .where(
                Entitlement.active_key.is_not(None),
                Entitlement.expires_at.is_not(None),
                Entitlement.expires_at <= now_utc,
            )
            .order_by(Entitlement.expires_at.asc(), Entitlement.id.asc())
            .limit(resolved_limit)
            .scalar_subquery()
        )
        stmt = (
            update(Entitlement)
            .where(Entitlement.id.in_(candidate_ids))
            .values(active_key=None)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
