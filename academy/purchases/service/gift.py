from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.constants import KIND_BUNDLE
from academy.catalog.service import CatalogService
from academy.core.errors import AcademyError
from academy.entitlements.constants import GRANT_GIFT
from academy.pricing.reconciler import compute_gift_cost
from academy.profiles.errors import UserNotFoundError
from academy.purchases.errors import InvalidRecipientError
from academy.purchases.types import BillingInfo, PurchaseResult

from .commit import _commit_purchase
from .constants import PURCHASE_TYPE_GIFT
from .utilities import _lock_users, _log_rejection
from .validation import _ensure_bundle_not_owned, _ensure_module_not_owned


async def purchase_gift(
    session: AsyncSession,
    *,
    payer_id: int,
    recipient_id: int,
    course_id: int,
    billing: BillingInfo,
    now_utc: datetime,
) -> PurchaseResult:
    """Pay full price for a module or bundle granted to another user.

    The payer's own plan and ownership never matter; the recipient must not
    already have the access being gifted.
    """
    try:
        if payer_id == recipient_id:
            raise InvalidRecipientError(
                payer_id=payer_id,
                recipient_id=recipient_id,
                reason="gifting to self",
            )

        course = await CatalogService.get_course(session, course_id)
        locked = await _lock_users(session, payer_id, recipient_id)
        if locked[payer_id] is None:
            raise UserNotFoundError(payer_id)
        if locked[recipient_id] is None:
            raise InvalidRecipientError(
                payer_id=payer_id,
                recipient_id=recipient_id,
                reason="recipient does not exist",
            )

        if course.kind == KIND_BUNDLE:
            await _ensure_bundle_not_owned(session, user_id=recipient_id, bundle=course, now_utc=now_utc)
        else:
            await _ensure_module_not_owned(session, user_id=recipient_id, module=course, now_utc=now_utc)

        return await _commit_purchase(
            session,
            purchase_type=PURCHASE_TYPE_GIFT,
            grant_type=GRANT_GIFT,
            payer_id=payer_id,
            grantee_id=recipient_id,
            course=course,
            amount=compute_gift_cost(course),
            billing=billing,
            now_utc=now_utc,
            gift_recipient_id=recipient_id,
        )
    except AcademyError as exc:
        _log_rejection(exc, purchase_type=PURCHASE_TYPE_GIFT, user_id=payer_id, course_id=course_id)
        raise
