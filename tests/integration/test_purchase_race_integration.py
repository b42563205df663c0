from __future__ import annotations

import pytest
from sqlalchemy import func, select

from academy.db.models.entitlements import Entitlement
from academy.db.models.purchases import Purchase
from academy.db.repo.entitlements_repo import EntitlementsRepo
from academy.db.repo.purchases_repo import PurchasesRepo
from academy.db.session import SessionLocal
from academy.entitlements.errors import DuplicateGrantError
from academy.entitlements.ledger import EntitlementLedger
from academy.purchases.service import PurchaseService
from academy.purchases.service import validation as purchase_validation
from tests.integration.academy_fixtures import BILLING, NOW, _create_catalog, _create_user


async def _count_rows() -> tuple[int, int]:
    async with SessionLocal.begin() as session:
        purchases = await session.scalar(select(func.count(Purchase.id)))
        grants = await session.scalar(select(func.count(Entitlement.id)))
    return int(purchases or 0), int(grants or 0)


@pytest.mark.asyncio
async def test_competing_purchase_committed_after_validation_loses_with_duplicate_grant(
    monkeypatch,
) -> None:
    user_id = await _create_user("race-module")
    _, (module_id, _) = await _create_catalog()

    original_has_bundle_grant = EntitlementLedger.has_bundle_grant
    competitor_state = {"ran": False}

    async def _has_bundle_grant_then_race(session, **kwargs):
        if not competitor_state["ran"]:
            competitor_state["ran"] = True
            async with SessionLocal.begin() as competitor_session:
                await PurchaseService.purchase_module(
                    competitor_session,
                    user_id=user_id,
                    module_id=module_id,
                    billing=BILLING,
                    now_utc=NOW,
                )
        return await original_has_bundle_grant(session, **kwargs)

    # The last validation step of the first attempt lets a second attempt commit in full.
    monkeypatch.setattr(
        purchase_validation.EntitlementLedger,
        "has_bundle_grant",
        staticmethod(_has_bundle_grant_then_race),
    )

    with pytest.raises(DuplicateGrantError) as exc_info:
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=module_id,
                billing=BILLING,
                now_utc=NOW,
            )

    assert exc_info.value.retryable is True
    assert exc_info.value.course_id == module_id
    assert await _count_rows() == (1, 1)

    async with SessionLocal.begin() as session:
        paid = await PurchasesRepo.count_paid_for_course(
            session,
            user_id=user_id,
            course_id=module_id,
            purchase_type="MODULE",
        )
    assert paid == 1


@pytest.mark.asyncio
async def test_unique_active_key_turns_storage_conflict_into_duplicate_grant(monkeypatch) -> None:
    user_id = await _create_user("race-storage")
    _, (module_id, _) = await _create_catalog()

    async with SessionLocal.begin() as session:
        await PurchaseService.purchase_module(
            session,
            user_id=user_id,
            module_id=module_id,
            billing=BILLING,
            now_utc=NOW,
        )

    async def _never_sees_holder(session, active_key):
        return None

    async def _never_owned(session, **kwargs):
        return False

    monkeypatch.setattr(EntitlementsRepo, "get_by_active_key_for_update", staticmethod(_never_sees_holder))
    monkeypatch.setattr(EntitlementsRepo, "has_live_grant", staticmethod(_never_owned))

    with pytest.raises(DuplicateGrantError):
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=module_id,
                billing=BILLING,
                now_utc=NOW,
            )

    assert await _count_rows() == (1, 1)
