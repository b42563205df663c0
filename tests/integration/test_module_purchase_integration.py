from __future__ import annotations

import pytest
from sqlalchemy import func, select

from academy.catalog.errors import CourseNotFoundError, InvalidCourseKindError
from academy.db.models.entitlements import Entitlement
from academy.db.models.outbox_events import OutboxEvent
from academy.db.models.purchases import Purchase
from academy.db.repo.entitlements_repo import EntitlementsRepo
from academy.db.session import SessionLocal
from academy.entitlements.ledger import EntitlementLedger
from academy.purchases.errors import AlreadyEntitledError, AlreadyOwnedError
from academy.purchases.service import PurchaseService
from academy.purchases.types import ModulePurchaseRequest
from tests.integration.academy_fixtures import BILLING, NOW, _create_catalog, _create_user


@pytest.mark.asyncio
async def test_purchase_module_writes_paid_purchase_and_module_grant() -> None:
    user_id = await _create_user("module-buyer")
    _, (module_id, _) = await _create_catalog()

    async with SessionLocal.begin() as session:
        result = await PurchaseService.purchase_module(
            session,
            user_id=user_id,
            module_id=module_id,
            billing=BILLING,
            now_utc=NOW,
        )
        purchase_id = result.purchase.id

    assert result.purchase.status == "PAID"
    assert result.purchase.amount == 500
    assert result.purchase.currency == "INR"
    assert result.purchase.paid_at == NOW
    assert result.entitlement.scope == "MODULE"
    assert result.entitlement.grant_type == "MODULE_PURCHASE"
    assert result.entitlement.source_purchase_id == purchase_id

    async with SessionLocal.begin() as session:
        assert await EntitlementLedger.has_module_grant(
            session,
            user_id=user_id,
            module_id=module_id,
            now_utc=NOW,
        )
        linked = await EntitlementsRepo.get_by_source_purchase_id(session, purchase_id)
        assert linked is not None
        assert linked.id == result.entitlement.id
        stored = await session.get(Purchase, purchase_id)
        assert stored is not None
        assert stored.invoice_number.startswith("INV-20260301-")
        assert len(stored.invoice_number) == len("INV-20260301-ABCDEF")
        assert stored.invoice["billing"] == {
            "name": "Asha Rao",
            "email": "asha@example.com",
            "address": "12 MG Road, Pune",
        }
        assert stored.invoice["amount"] == 500
        assert stored.invoice["line_items"][0]["title"] == "Module 1"

        event_types = (
            await session.execute(select(OutboxEvent.event_type).order_by(OutboxEvent.id.asc()))
        ).scalars().all()
        assert event_types == ["purchase_committed", "entitlement_granted"]


@pytest.mark.asyncio
async def test_purchase_module_twice_is_rejected_as_already_owned() -> None:
    user_id = await _create_user("module-twice")
    _, (module_id, _) = await _create_catalog()

    async with SessionLocal.begin() as session:
        await PurchaseService.purchase_module(
            session,
            user_id=user_id,
            module_id=module_id,
            billing=BILLING,
            now_utc=NOW,
        )

    with pytest.raises(AlreadyOwnedError) as exc_info:
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=module_id,
                billing=BILLING,
                now_utc=NOW,
            )
    assert exc_info.value.course_id == module_id

    async with SessionLocal.begin() as session:
        purchase_count = await session.scalar(select(func.count(Purchase.id)))
        grant_count = await session.scalar(select(func.count(Entitlement.id)))
    assert purchase_count == 1
    assert grant_count == 1


@pytest.mark.asyncio
async def test_purchase_module_rejected_for_pro_user_without_writes() -> None:
    user_id = await _create_user("module-pro", plan="PRO")
    _, (module_id, _) = await _create_catalog()

    with pytest.raises(AlreadyEntitledError) as exc_info:
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=module_id,
                billing=BILLING,
                now_utc=NOW,
            )
    assert exc_info.value.plan == "PRO"

    async with SessionLocal.begin() as session:
        assert await session.scalar(select(func.count(Purchase.id))) == 0
        assert await session.scalar(select(func.count(OutboxEvent.id))) == 0


@pytest.mark.asyncio
async def test_purchase_module_rejects_bundle_id_and_unknown_id() -> None:
    user_id = await _create_user("module-kind")
    bundle_id, _ = await _create_catalog()

    with pytest.raises(InvalidCourseKindError):
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=bundle_id,
                billing=BILLING,
                now_utc=NOW,
            )

    with pytest.raises(CourseNotFoundError):
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=999_999,
                billing=BILLING,
                now_utc=NOW,
            )


@pytest.mark.asyncio
async def test_bundle_grant_supersedes_module_purchase() -> None:
    user_id = await _create_user("module-under-bundle")
    bundle_id, (module_id, _) = await _create_catalog()

    async with SessionLocal.begin() as session:
        await PurchaseService.purchase_bundle(
            session,
            user_id=user_id,
            bundle_id=bundle_id,
            billing=BILLING,
            now_utc=NOW,
        )

    with pytest.raises(AlreadyOwnedError) as exc_info:
        async with SessionLocal.begin() as session:
            await PurchaseService.purchase_module(
                session,
                user_id=user_id,
                module_id=module_id,
                billing=BILLING,
                now_utc=NOW,
            )
    assert exc_info.value.covering_course_id == bundle_id


@pytest.mark.asyncio
async def test_submit_dispatches_module_request() -> None:
    user_id = await _create_user("module-submit")
    _, (_, module_id) = await _create_catalog()

    async with SessionLocal.begin() as session:
        result = await PurchaseService.submit(
            session,
            ModulePurchaseRequest(user_id=user_id, module_id=module_id, billing=BILLING),
            now_utc=NOW,
        )

    assert result.purchase.purchase_type == "MODULE"
    assert result.purchase.amount == 400
    assert result.entitlement.course_id == module_id
