from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.errors import AcademyError
from academy.db.models.users import User
from academy.db.repo.users_repo import UsersRepo

from .constants import INVOICE_NUMBER_PREFIX, INVOICE_SUFFIX_LENGTH

logger = structlog.get_logger(__name__)


def _build_invoice_number(now_utc: datetime) -> str:
    suffix = uuid4().hex[:INVOICE_SUFFIX_LENGTH].upper()
    return f"{INVOICE_NUMBER_PREFIX}-{now_utc:%Y%m%d}-{suffix}"


async def _lock_users(session: AsyncSession, *user_ids: int) -> dict[int, User | None]:
    # Ascending id order so that two gifts between the same pair never deadlock.
    locked: dict[int, User | None] = {}
    for user_id in sorted(set(user_ids)):
        locked[user_id] = await UsersRepo.get_by_id_for_update(session, user_id)
    return locked


def _log_rejection(
    exc: AcademyError,
    *,
    purchase_type: str,
    user_id: int,
    course_id: int,
) -> None:
    logger.warning(
        "purchase_rejected",
        purchase_type=purchase_type,
        user_id=user_id,
        course_id=course_id,
        error_code=exc.code,
        retryable=exc.retryable,
    )
