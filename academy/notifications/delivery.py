from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academy.db.models.outbox_events import OutboxEvent
from academy.db.repo.outbox_events_repo import OutboxEventsRepo

logger = structlog.get_logger(__name__)

STATUS_SENT = "SENT"
STATUS_FAILED = "FAILED"


def _setting_str(settings: object, attr: str) -> str:
    value = getattr(settings, attr, "")
    return value.strip() if isinstance(value, str) else ""


def _build_body(event: OutboxEvent) -> dict[str, Any]:
    return {
        "event_id": event.id,
        "event_type": event.event_type,
        "payload": event.payload,
        "created_at": event.created_at.isoformat(),
    }


async def post_json(
    *,
    client: httpx.AsyncClient,
    url: str,
    body: dict[str, Any],
    event_type: str,
) -> bool:
    try:
        response = await client.post(url, json=body)
        response.raise_for_status()
        return True
    except httpx.HTTPError:
        logger.exception("notification_delivery_failed", event_type=event_type)
        return False


def _mark_attempt(
    event: OutboxEvent,
    *,
    delivered: bool,
    max_attempts: int,
    now_utc: datetime,
) -> str:
    event.attempts = int(event.attempts or 0) + 1
    if delivered:
        event.status = STATUS_SENT
        event.processed_at = now_utc
    elif event.attempts >= max_attempts:
        event.status = STATUS_FAILED
        event.processed_at = now_utc
    return event.status


async def _record_attempt(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    event_id: int,
    delivered: bool,
    max_attempts: int,
    now_utc: datetime,
) -> str | None:
    async with session_factory.begin() as session:
        event = await OutboxEventsRepo.get_pending_for_update(session, event_id)
        if event is None:
            return None
        status = _mark_attempt(event, delivered=delivered, max_attempts=max_attempts, now_utc=now_utc)
        if status == STATUS_FAILED:
            logger.warning(
                "notification_delivery_gave_up",
                event_id=event.id,
                event_type=event.event_type,
                attempts=event.attempts,
            )
        return status


def _tally(result: dict[str, int], status: str | None) -> None:
    if status == STATUS_SENT:
        result["sent"] += 1
    elif status == STATUS_FAILED:
        result["failed"] += 1
    elif status is not None:
        result["retry"] += 1


async def deliver_pending_events(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    settings: object,
    now_utc: datetime,
    client: httpx.AsyncClient | None = None,
) -> dict[str, int]:
    """Push one batch of pending outbox events to the notification webhook.

    The batch is read in a short transaction and every outcome is written in
    its own, so no row lock is held while a webhook call is in flight. An
    event another worker settled in the meantime is skipped. Without a
    configured webhook the events are only logged and marked sent. A failing
    webhook increments ``attempts`` and gives up after the configured maximum;
    the purchases that produced the events are never touched.
    """
    batch_size = int(getattr(settings, "notifications_batch_size", 100))
    max_attempts = max(1, int(getattr(settings, "notifications_max_attempts", 5)))
    timeout_seconds = float(getattr(settings, "notifications_timeout_seconds", 5.0))
    webhook_url = _setting_str(settings, "notifications_webhook_url")

    async with session_factory.begin() as session:
        events = await OutboxEventsRepo.list_pending(session, limit=batch_size)
        bodies = [_build_body(event) for event in events]

    result = {"picked": len(bodies), "sent": 0, "retry": 0, "failed": 0}
    if not bodies:
        return result

    if not webhook_url:
        for body in bodies:
            logger.info(
                "notification_logged",
                event_id=body["event_id"],
                event_type=body["event_type"],
                payload=body["payload"],
            )
            status = await _record_attempt(
                session_factory,
                event_id=body["event_id"],
                delivered=True,
                max_attempts=max_attempts,
                now_utc=now_utc,
            )
            _tally(result, status)
        return result

    owns_client = client is None
    http_client = client or httpx.AsyncClient(timeout=timeout_seconds)
    try:
        for body in bodies:
            delivered = await post_json(
                client=http_client,
                url=webhook_url,
                body=body,
                event_type=body["event_type"],
            )
            status = await _record_attempt(
                session_factory,
                event_id=body["event_id"],
                delivered=delivered,
                max_attempts=max_attempts,
                now_utc=now_utc,
            )
            _tally(result, status)
    finally:
        if owns_client:
            await http_client.aclose()
    return result
