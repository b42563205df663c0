from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.purchases import Purchase


class PurchasesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, purchase_id: UUID) -> Purchase | None:
        return await session.get(Purchase, purchase_id)

    @staticmethod
    async def get_for_payer(
        session: AsyncSession,
        *,
        purchase_id: UUID,
        user_id: int,
    ) -> Purchase | None:
        stmt = select(Purchase).where(Purchase.id == purchase_id, Purchase.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_user(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int = 100,
    ) -> list[Purchase]:
        stmt = (
            select(Purchase)
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.created_at.desc(), Purchase.id.desc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_paid_for_course(
        session: AsyncSession,
        *,
        user_id: int,
        course_id: int,
        purchase_type: str,
    ) -> int:
        stmt = select(func.count(Purchase.id)).where(
            Purchase.user_id == user_id,
            Purchase.course_id == course_id,
            Purchase.purchase_type == purchase_type,
            Purchase.status == "PAID",
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create(session: AsyncSession, *, purchase: Purchase) -> Purchase:
        session.add(purchase)
        await session.flush()
        return purchase
