from __future__ import annotations

from datetime import datetime, timezone

import structlog

from academy.core.config import get_settings
from academy.db.session import SessionLocal
from academy.notifications.delivery import deliver_pending_events
from academy.workers.asyncio_runner import run_async_job
from academy.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def deliver_notifications_async() -> dict[str, int]:
    settings = get_settings()
    now_utc = datetime.now(timezone.utc)
    result = await deliver_pending_events(SessionLocal, settings=settings, now_utc=now_utc)

    logger.info("notifications_delivery_finished", **result)
    return result


@celery_app.task(name="academy.workers.tasks.notifications.deliver_notifications")
def deliver_notifications() -> dict[str, int]:
    return run_async_job(lambda: deliver_notifications_async(), job_name="deliver_notifications")


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "notifications-delivery": {
            "task": "academy.workers.tasks.notifications.deliver_notifications",
            "schedule": float(get_settings().notifications_schedule_seconds),
            "options": {"queue": "q_normal"},
        },
    }
)
