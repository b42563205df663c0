from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.service import CatalogService
from academy.core.errors import AcademyError
from academy.db.repo.courses_repo import CoursesRepo
from academy.entitlements.constants import GRANT_BUNDLE_PURCHASE
from academy.entitlements.ledger import EntitlementLedger
from academy.pricing.reconciler import quote_upgrade
from academy.profiles.plans import PlanProvider
from academy.purchases.types import BillingInfo, PurchaseResult

from .commit import _commit_purchase
from .constants import PURCHASE_TYPE_BUNDLE
from .utilities import _log_rejection
from .validation import _ensure_bundle_not_owned, _ensure_not_pro, _lock_payer


async def purchase_bundle(
    session: AsyncSession,
    *,
    user_id: int,
    bundle_id: int,
    billing: BillingInfo,
    now_utc: datetime,
    plan_provider: PlanProvider | None = None,
) -> PurchaseResult:
    """Buy a bundle, crediting the list price of modules the user already owns."""
    try:
        bundle = await CatalogService.get_bundle(session, bundle_id)
        await _lock_payer(session, user_id=user_id)
        await _ensure_not_pro(session, user_id=user_id, plan_provider=plan_provider)
        await _ensure_bundle_not_owned(session, user_id=user_id, bundle=bundle, now_utc=now_utc)

        owned_ids = await EntitlementLedger.list_owned_modules_under(
            session,
            user_id=user_id,
            bundle_id=bundle.id,
            now_utc=now_utc,
        )
        owned_modules = await CoursesRepo.list_by_ids(session, owned_ids)
        quote = quote_upgrade(bundle, owned_modules)

        return await _commit_purchase(
            session,
            purchase_type=PURCHASE_TYPE_BUNDLE,
            grant_type=GRANT_BUNDLE_PURCHASE,
            payer_id=user_id,
            grantee_id=user_id,
            course=bundle,
            amount=quote.amount,
            billing=billing,
            now_utc=now_utc,
            metadata={
                "bundle_price": quote.bundle_price,
                "owned_price_sum": quote.owned_price_sum,
                "credited_module_ids": list(quote.owned_module_ids),
            },
        )
    except AcademyError as exc:
        _log_rejection(exc, purchase_type=PURCHASE_TYPE_BUNDLE, user_id=user_id, course_id=bundle_id)
        raise
