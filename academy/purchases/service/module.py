from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.service import CatalogService
from academy.core.errors import AcademyError
from academy.entitlements.constants import GRANT_MODULE_PURCHASE
from academy.profiles.plans import PlanProvider
from academy.purchases.types import BillingInfo, PurchaseResult

from .commit import _commit_purchase
from .constants import PURCHASE_TYPE_MODULE
from .utilities import _log_rejection
from .validation import _ensure_module_not_owned, _ensure_not_pro, _lock_payer


async def purchase_module(
    session: AsyncSession,
    *,
    user_id: int,
    module_id: int,
    billing: BillingInfo,
    now_utc: datetime,
    plan_provider: PlanProvider | None = None,
) -> PurchaseResult:
    try:
        module = await CatalogService.get_module(session, module_id)
        await _lock_payer(session, user_id=user_id)
        await _ensure_not_pro(session, user_id=user_id, plan_provider=plan_provider)
        await _ensure_module_not_owned(session, user_id=user_id, module=module, now_utc=now_utc)

        return await _commit_purchase(
            session,
            purchase_type=PURCHASE_TYPE_MODULE,
            grant_type=GRANT_MODULE_PURCHASE,
            payer_id=user_id,
            grantee_id=user_id,
            course=module,
            amount=int(module.individual_price or 0),
            billing=billing,
            now_utc=now_utc,
        )
    except AcademyError as exc:
        _log_rejection(exc, purchase_type=PURCHASE_TYPE_MODULE, user_id=user_id, course_id=module_id)
        raise
