from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from academy.db.models.courses import Course
from academy.db.models.purchases import Purchase
from academy.purchases.types import BillingInfo

from .constants import PURCHASE_STATUS_PAID
from .utilities import _build_invoice_number


def _build_invoice(
    *,
    invoice_number: str,
    purchase_type: str,
    payer_id: int,
    recipient_id: int | None,
    course: Course,
    amount: int,
    billing: BillingInfo,
    issued_at: datetime,
    adjustments: dict[str, object] | None = None,
) -> dict[str, object]:
    """Snapshot everything the invoice shows at commit time.

    Titles and prices are copied, not referenced, so later catalog edits never
    change an issued invoice.
    """
    line_item: dict[str, object] = {
        "course_id": course.id,
        "course_kind": course.kind,
        "title": course.title,
        "amount": amount,
    }
    if adjustments:
        line_item["adjustments"] = dict(adjustments)
    return {
        "number": invoice_number,
        "issued_at": issued_at.isoformat(),
        "purchase_type": purchase_type,
        "payer_id": payer_id,
        "recipient_id": recipient_id,
        "billing": billing.as_snapshot(),
        "line_items": [line_item],
        "amount": amount,
        "currency": course.currency,
    }


def _build_purchase(
    *,
    purchase_type: str,
    payer_id: int,
    course: Course,
    amount: int,
    billing: BillingInfo,
    now_utc: datetime,
    gift_recipient_id: int | None = None,
    metadata: dict[str, object] | None = None,
) -> Purchase:
    invoice_number = _build_invoice_number(now_utc)
    return Purchase(
        id=uuid4(),
        user_id=payer_id,
        purchase_type=purchase_type,
        course_id=course.id,
        gift_recipient_id=gift_recipient_id,
        amount=amount,
        currency=course.currency,
        status=PURCHASE_STATUS_PAID,
        invoice_number=invoice_number,
        invoice=_build_invoice(
            invoice_number=invoice_number,
            purchase_type=purchase_type,
            payer_id=payer_id,
            recipient_id=gift_recipient_id,
            course=course,
            amount=amount,
            billing=billing,
            issued_at=now_utc,
            adjustments=metadata,
        ),
        metadata_=dict(metadata or {}),
        created_at=now_utc,
        paid_at=now_utc,
    )
