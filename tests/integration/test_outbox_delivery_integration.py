from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from academy.db.models.outbox_events import OutboxEvent
from academy.db.repo.outbox_events_repo import OutboxEventsRepo
from academy.db.session import SessionLocal
from academy.notifications.delivery import deliver_pending_events
from academy.purchases.service import PurchaseService
from tests.integration.academy_fixtures import BILLING, NOW, _create_catalog, _create_user


def _settings(**overrides) -> SimpleNamespace:
    values = {
        "notifications_webhook_url": "https://hooks.example.com/academy",
        "notifications_timeout_seconds": 1.0,
        "notifications_max_attempts": 2,
        "notifications_batch_size": 50,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


async def _commit_one_purchase() -> int:
    user_id = await _create_user("outbox")
    _, (module_id, _) = await _create_catalog()
    async with SessionLocal.begin() as session:
        await PurchaseService.purchase_module(
            session,
            user_id=user_id,
            module_id=module_id,
            billing=BILLING,
            now_utc=NOW,
        )
    return user_id


@pytest.mark.asyncio
async def test_pending_events_are_posted_and_marked_sent() -> None:
    await _commit_one_purchase()
    received: list[dict[str, object]] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(202)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        result = await deliver_pending_events(
            SessionLocal,
            settings=_settings(),
            now_utc=NOW,
            client=client,
        )

    assert result == {"picked": 2, "sent": 2, "retry": 0, "failed": 0}
    assert [body["event_type"] for body in received] == ["purchase_committed", "entitlement_granted"]
    assert received[0]["payload"]["amount"] == 500

    async with SessionLocal.begin() as session:
        committed = await OutboxEventsRepo.list_by_type(session, event_type="purchase_committed")
    assert committed[0].status == "SENT"
    assert committed[0].attempts == 1
    assert committed[0].processed_at == NOW


@pytest.mark.asyncio
async def test_failing_webhook_retries_then_gives_up_without_touching_purchase() -> None:
    user_id = await _commit_one_purchase()

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        first = await deliver_pending_events(SessionLocal, settings=_settings(), now_utc=NOW, client=client)
        second = await deliver_pending_events(SessionLocal, settings=_settings(), now_utc=NOW, client=client)
        third = await deliver_pending_events(SessionLocal, settings=_settings(), now_utc=NOW, client=client)

    assert first == {"picked": 2, "sent": 0, "retry": 2, "failed": 0}
    assert second == {"picked": 2, "sent": 0, "retry": 0, "failed": 2}
    assert third["picked"] == 0

    async with SessionLocal.begin() as session:
        purchases = await PurchaseService.list_purchases(session, user_id=user_id)
    assert len(purchases) == 1
    assert purchases[0].status == "PAID"


@pytest.mark.asyncio
async def test_event_settled_elsewhere_during_post_is_not_counted_again() -> None:
    await _commit_one_purchase()
    settled: list[int] = []

    async def _handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if not settled:
            # Another worker finishes this event while our webhook call is in flight.
            async with SessionLocal.begin() as session:
                event = await session.get(OutboxEvent, body["event_id"])
                event.status = "SENT"
                event.attempts = 1
                event.processed_at = NOW
            settled.append(body["event_id"])
        return httpx.Response(202)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        result = await deliver_pending_events(
            SessionLocal,
            settings=_settings(),
            now_utc=NOW,
            client=client,
        )

    assert result == {"picked": 2, "sent": 1, "retry": 0, "failed": 0}
    async with SessionLocal.begin() as session:
        settled_event = await session.get(OutboxEvent, settled[0])
    assert settled_event.attempts == 1


@pytest.mark.asyncio
async def test_without_webhook_events_are_logged_and_marked_sent() -> None:
    await _commit_one_purchase()

    result = await deliver_pending_events(
        SessionLocal,
        settings=_settings(notifications_webhook_url=""),
        now_utc=NOW,
    )

    assert result == {"picked": 2, "sent": 2, "retry": 0, "failed": 0}
    async with SessionLocal.begin() as session:
        pending = await OutboxEventsRepo.list_pending(session, limit=10)
    assert pending == []
