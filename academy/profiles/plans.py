from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.repo.users_repo import UsersRepo

PLAN_FREE = "FREE"
PLAN_PRO = "PRO"


@dataclass(frozen=True, slots=True)
class Viewer:
    """Who is asking for content. ``user_id`` is None for anonymous callers."""

    user_id: int | None
    plan: str = PLAN_FREE

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def is_pro(self) -> bool:
        return self.plan == PLAN_PRO


ANONYMOUS = Viewer(user_id=None, plan=PLAN_FREE)


class PlanProvider(Protocol):
    async def get_plan(self, session: AsyncSession, user_id: int) -> str: ...


class ProfilePlanProvider:
    """Reads the plan flag kept by the user-profile owner on every call."""

    async def get_plan(self, session: AsyncSession, user_id: int) -> str:
        plan = await UsersRepo.get_plan(session, user_id)
        if plan == PLAN_PRO:
            return PLAN_PRO
        return PLAN_FREE


default_plan_provider = ProfilePlanProvider()


async def resolve_viewer(
    session: AsyncSession,
    user_id: int | None,
    *,
    plan_provider: PlanProvider | None = None,
) -> Viewer:
    if user_id is None:
        return ANONYMOUS
    provider = plan_provider or default_plan_provider
    return Viewer(user_id=user_id, plan=await provider.get_plan(session, user_id))
