from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.entitlements import Entitlement
from academy.db.models.purchases import Purchase
from academy.db.repo.outbox_events_repo import OutboxEventsRepo

EVENT_PURCHASE_COMMITTED = "purchase_committed"
EVENT_ENTITLEMENT_GRANTED = "entitlement_granted"
EVENT_ENTITLEMENT_REVOKED = "entitlement_revoked"


def purchase_payload(purchase: Purchase) -> dict[str, object]:
    payload: dict[str, object] = {
        "purchase_id": str(purchase.id),
        "user_id": purchase.user_id,
        "purchase_type": purchase.purchase_type,
        "course_id": purchase.course_id,
        "amount": purchase.amount,
        "currency": purchase.currency,
        "invoice_number": purchase.invoice_number,
    }
    if purchase.gift_recipient_id is not None:
        payload["gift_recipient_id"] = purchase.gift_recipient_id
    return payload


def entitlement_payload(entitlement: Entitlement) -> dict[str, object]:
    return {
        "entitlement_id": entitlement.id,
        "user_id": entitlement.user_id,
        "course_id": entitlement.course_id,
        "scope": entitlement.scope,
        "grant_type": entitlement.grant_type,
        "source_purchase_id": (
            str(entitlement.source_purchase_id) if entitlement.source_purchase_id is not None else None
        ),
        "expires_at": entitlement.expires_at.isoformat() if entitlement.expires_at is not None else None,
    }


async def emit_outbox_event(
    session: AsyncSession,
    *,
    event_type: str,
    payload: dict[str, object],
    happened_at: datetime,
) -> None:
    """Queue an event for the notification collaborator in the caller's transaction.

    Delivery happens later in a worker; its failures never reach the write
    that produced the event.
    """
    await OutboxEventsRepo.create(
        session,
        event_type=event_type,
        payload={**payload, "happened_at": happened_at.isoformat()},
        created_at=happened_at,
    )
