from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.courses import Course
from academy.db.repo.purchases_repo import PurchasesRepo
from academy.entitlements.constants import SCOPE_BY_COURSE_KIND
from academy.entitlements.ledger import EntitlementLedger
from academy.notifications.events import (
    EVENT_ENTITLEMENT_GRANTED,
    EVENT_PURCHASE_COMMITTED,
    emit_outbox_event,
    entitlement_payload,
    purchase_payload,
)
from academy.purchases.types import BillingInfo, PurchaseResult

from .builder import _build_purchase

logger = structlog.get_logger(__name__)


async def _commit_purchase(
    session: AsyncSession,
    *,
    purchase_type: str,
    grant_type: str,
    payer_id: int,
    grantee_id: int,
    course: Course,
    amount: int,
    billing: BillingInfo,
    now_utc: datetime,
    gift_recipient_id: int | None = None,
    metadata: dict[str, object] | None = None,
) -> PurchaseResult:
    """Write the paid purchase, its grant and both outbox events.

    Runs in the caller's transaction; any error leaves nothing behind once the
    caller rolls back.
    """
    purchase = await PurchasesRepo.create(
        session,
        purchase=_build_purchase(
            purchase_type=purchase_type,
            payer_id=payer_id,
            course=course,
            amount=amount,
            billing=billing,
            now_utc=now_utc,
            gift_recipient_id=gift_recipient_id,
            metadata=metadata,
        ),
    )
    entitlement = await EntitlementLedger.create_grant(
        session,
        user_id=grantee_id,
        scope=SCOPE_BY_COURSE_KIND[course.kind],
        course_id=course.id,
        grant_type=grant_type,
        now_utc=now_utc,
        source_purchase_id=purchase.id,
    )

    await emit_outbox_event(
        session,
        event_type=EVENT_PURCHASE_COMMITTED,
        payload=purchase_payload(purchase),
        happened_at=now_utc,
    )
    await emit_outbox_event(
        session,
        event_type=EVENT_ENTITLEMENT_GRANTED,
        payload=entitlement_payload(entitlement),
        happened_at=now_utc,
    )

    logger.info(
        "purchase_committed",
        purchase_id=str(purchase.id),
        purchase_type=purchase_type,
        user_id=payer_id,
        grantee_id=grantee_id,
        course_id=course.id,
        amount=amount,
        currency=purchase.currency,
        invoice_number=purchase.invoice_number,
        entitlement_id=entitlement.id,
    )
    return PurchaseResult(purchase=purchase, entitlement=entitlement)
