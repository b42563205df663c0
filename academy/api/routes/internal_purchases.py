from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from academy.core.errors import AcademyError
from academy.db.models.purchases import Purchase
from academy.db.session import SessionLocal
from academy.purchases.service import PurchaseService
from academy.purchases.types import (
    BillingInfo,
    BundlePurchaseRequest,
    GiftPurchaseRequest,
    ModulePurchaseRequest,
    PurchaseRequest,
)

from .internal_entitlements import as_entitlement_response
from .internal_helpers import assert_internal_access, raise_http_error
from .internal_models import (
    BundlePurchaseBody,
    InvoiceResponse,
    ModulePurchaseBody,
    PurchaseBody,
    PurchaseCommittedResponse,
    PurchaseResponse,
    PurchasesResponse,
)

router = APIRouter(tags=["internal", "purchases"])


def _as_purchase_response(purchase: Purchase) -> PurchaseResponse:
    return PurchaseResponse(
        purchase_id=purchase.id,
        user_id=int(purchase.user_id),
        purchase_type=str(purchase.purchase_type),
        course_id=int(purchase.course_id),
        gift_recipient_id=purchase.gift_recipient_id,
        amount=int(purchase.amount),
        currency=str(purchase.currency),
        status=str(purchase.status),
        invoice_number=str(purchase.invoice_number),
        created_at=purchase.created_at,
        paid_at=purchase.paid_at,
    )


def _as_purchase_request(body: PurchaseBody) -> PurchaseRequest:
    billing = BillingInfo(
        name=body.billing.name,
        email=body.billing.email,
        address=body.billing.address,
    )
    if isinstance(body, ModulePurchaseBody):
        return ModulePurchaseRequest(user_id=body.user_id, module_id=body.module_id, billing=billing)
    if isinstance(body, BundlePurchaseBody):
        return BundlePurchaseRequest(user_id=body.user_id, bundle_id=body.bundle_id, billing=billing)
    return GiftPurchaseRequest(
        payer_id=body.payer_id,
        recipient_id=body.recipient_id,
        course_id=body.course_id,
        billing=billing,
    )


@router.post(
    "/internal/purchases",
    response_model=PurchaseCommittedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase(request: Request, body: PurchaseBody) -> PurchaseCommittedResponse:
    assert_internal_access(request, surface="purchases")
    try:
        async with SessionLocal.begin() as session:
            result = await PurchaseService.submit(
                session,
                _as_purchase_request(body),
                now_utc=datetime.now(timezone.utc),
            )
            response = PurchaseCommittedResponse(
                purchase=_as_purchase_response(result.purchase),
                entitlement=as_entitlement_response(result.entitlement),
            )
    except AcademyError as exc:
        raise_http_error(exc)
    return response


@router.get("/internal/users/{user_id}/purchases", response_model=PurchasesResponse)
async def list_user_purchases(
    request: Request,
    user_id: int,
    limit: int = Query(default=50, ge=1, le=200),
) -> PurchasesResponse:
    assert_internal_access(request, surface="purchases")
    async with SessionLocal.begin() as session:
        purchases = await PurchaseService.list_purchases(session, user_id=user_id, limit=limit)
        items = [_as_purchase_response(purchase) for purchase in purchases]
    return PurchasesResponse(user_id=user_id, purchases=items)


@router.get("/internal/users/{user_id}/purchases/{purchase_id}/invoice", response_model=InvoiceResponse)
async def get_purchase_invoice(request: Request, user_id: int, purchase_id: UUID) -> InvoiceResponse:
    assert_internal_access(request, surface="purchases")
    try:
        async with SessionLocal.begin() as session:
            invoice = await PurchaseService.get_invoice(
                session,
                user_id=user_id,
                purchase_id=purchase_id,
            )
    except AcademyError as exc:
        raise_http_error(exc)
    return InvoiceResponse(purchase_id=purchase_id, invoice=invoice)
