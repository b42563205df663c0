from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from academy.profiles.plans import PlanProvider
from academy.purchases.types import (
    BundlePurchaseRequest,
    GiftPurchaseRequest,
    ModulePurchaseRequest,
    PurchaseRequest,
    PurchaseResult,
)

from .bundle import purchase_bundle
from .gift import purchase_gift
from .module import purchase_module


async def submit(
    session: AsyncSession,
    request: PurchaseRequest,
    *,
    now_utc: datetime,
    plan_provider: PlanProvider | None = None,
) -> PurchaseResult:
    if isinstance(request, ModulePurchaseRequest):
        return await purchase_module(
            session,
            user_id=request.user_id,
            module_id=request.module_id,
            billing=request.billing,
            now_utc=now_utc,
            plan_provider=plan_provider,
        )
    if isinstance(request, BundlePurchaseRequest):
        return await purchase_bundle(
            session,
            user_id=request.user_id,
            bundle_id=request.bundle_id,
            billing=request.billing,
            now_utc=now_utc,
            plan_provider=plan_provider,
        )
    if isinstance(request, GiftPurchaseRequest):
        return await purchase_gift(
            session,
            payer_id=request.payer_id,
            recipient_id=request.recipient_id,
            course_id=request.course_id,
            billing=request.billing,
            now_utc=now_utc,
        )
    raise TypeError(f"unsupported purchase request: {type(request).__name__}")
