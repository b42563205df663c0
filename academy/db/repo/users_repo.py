from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_plan(session: AsyncSession, user_id: int) -> str | None:
        stmt = select(User.plan).where(User.id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        email: str,
        display_name: str | None = None,
        plan: str = "FREE",
    ) -> User:
        user = User(
            email=email,
            display_name=display_name,
            plan=plan,
            status="ACTIVE",
        )
        session.add(user)
        await session.flush()
        return user
