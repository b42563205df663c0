from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.outbox_events import OutboxEvent


class OutboxEventsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        event_type: str,
        payload: dict[str, object],
        created_at: datetime,
        status: str = "PENDING",
    ) -> OutboxEvent:
        event = OutboxEvent(
            event_type=event_type,
            payload=payload,
            status=status,
            attempts=0,
            created_at=created_at,
        )
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def list_pending(
        session: AsyncSession,
        *,
        limit: int,
    ) -> list[OutboxEvent]:
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.status == "PENDING")
            .order_by(OutboxEvent.created_at.asc(), OutboxEvent.id.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_pending_for_update(session: AsyncSession, event_id: int) -> OutboxEvent | None:
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.id == event_id, OutboxEvent.status == "PENDING")
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def backlog_stats(session: AsyncSession) -> tuple[int, datetime | None, int]:
        """(pending count, oldest pending created_at, failed count)."""
        pending_stmt = select(func.count(OutboxEvent.id), func.min(OutboxEvent.created_at)).where(
            OutboxEvent.status == "PENDING"
        )
        pending_count, oldest_pending = (await session.execute(pending_stmt)).one()
        failed_count = await session.scalar(
            select(func.count(OutboxEvent.id)).where(OutboxEvent.status == "FAILED")
        )
        return int(pending_count or 0), oldest_pending, int(failed_count or 0)

    @staticmethod
    async def list_by_type(
        session: AsyncSession,
        *,
        event_type: str,
    ) -> list[OutboxEvent]:
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.event_type == event_type)
            .order_by(OutboxEvent.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_processed_before(
        session: AsyncSession,
        *,
        cutoff_utc: datetime,
        limit: int,
    ) -> int:
        resolved_limit = max(1, int(limit))
        candidate_ids = (
            select(OutboxEvent.id)
            .where(
                OutboxEvent.status == "SENT",
                OutboxEvent.created_at < cutoff_utc,
            )
            .order_by(OutboxEvent.created_at.asc(), OutboxEvent.id.asc())
            .limit(resolved_limit)
            .scalar_subquery()
        )
        stmt = delete(OutboxEvent).where(OutboxEvent.id.in_(candidate_ids))
        result = await session.execute(stmt)
        return result.rowcount or 0
