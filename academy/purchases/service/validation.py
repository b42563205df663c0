from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.courses import Course
from academy.entitlements.ledger import EntitlementLedger
from academy.profiles.errors import UserNotFoundError
from academy.profiles.plans import PlanProvider, resolve_viewer
from academy.purchases.errors import AlreadyEntitledError, AlreadyOwnedError

from .utilities import _lock_users


async def _lock_payer(session: AsyncSession, *, user_id: int) -> None:
    locked = await _lock_users(session, user_id)
    if locked[user_id] is None:
        raise UserNotFoundError(user_id)


async def _ensure_not_pro(
    session: AsyncSession,
    *,
    user_id: int,
    plan_provider: PlanProvider | None,
) -> None:
    viewer = await resolve_viewer(session, user_id, plan_provider=plan_provider)
    if viewer.is_pro:
        raise AlreadyEntitledError(user_id=user_id, plan=viewer.plan)


async def _ensure_module_not_owned(
    session: AsyncSession,
    *,
    user_id: int,
    module: Course,
    now_utc: datetime,
) -> None:
    if await EntitlementLedger.has_module_grant(
        session,
        user_id=user_id,
        module_id=module.id,
        now_utc=now_utc,
    ):
        raise AlreadyOwnedError(user_id=user_id, course_id=module.id)
    if module.parent_id is not None and await EntitlementLedger.has_bundle_grant(
        session,
        user_id=user_id,
        bundle_id=module.parent_id,
        now_utc=now_utc,
    ):
        raise AlreadyOwnedError(
            user_id=user_id,
            course_id=module.id,
            covering_course_id=module.parent_id,
        )


async def _ensure_bundle_not_owned(
    session: AsyncSession,
    *,
    user_id: int,
    bundle: Course,
    now_utc: datetime,
) -> None:
    if await EntitlementLedger.has_bundle_grant(
        session,
        user_id=user_id,
        bundle_id=bundle.id,
        now_utc=now_utc,
    ):
        raise AlreadyOwnedError(user_id=user_id, course_id=bundle.id)
