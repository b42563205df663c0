from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import partial

import structlog

from academy.core.config import get_settings
from academy.db.repo.outbox_events_repo import OutboxEventsRepo
from academy.db.session import SessionLocal
from academy.entitlements.ledger import EntitlementLedger
from academy.workers.asyncio_runner import run_async_job
from academy.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
OUTBOX_SENT_RETENTION = timedelta(days=30)


async def run_entitlement_housekeeping_async(*, batch_size: int | None = None) -> dict[str, int]:
    resolved_batch_size = max(
        1,
        int(batch_size or get_settings().entitlement_housekeeping_batch_size),
    )
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        released_keys = await EntitlementLedger.release_expired_keys(
            session,
            now_utc=now_utc,
            limit=resolved_batch_size,
        )
        pruned_events = await OutboxEventsRepo.delete_processed_before(
            session,
            cutoff_utc=now_utc - OUTBOX_SENT_RETENTION,
            limit=resolved_batch_size,
        )

    result = {"released_keys": released_keys, "pruned_outbox_events": pruned_events}
    logger.info("entitlement_housekeeping_finished", **result)
    return result


@celery_app.task(name="academy.workers.tasks.entitlements_housekeeping.run_entitlement_housekeeping")
def run_entitlement_housekeeping(batch_size: int | None = None) -> dict[str, int]:
    return run_async_job(
        partial(run_entitlement_housekeeping_async, batch_size=batch_size),
        job_name="run_entitlement_housekeeping",
    )


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "entitlement-housekeeping": {
            "task": "academy.workers.tasks.entitlements_housekeeping.run_entitlement_housekeeping",
            "schedule": float(get_settings().entitlement_housekeeping_schedule_seconds),
            "options": {"queue": "q_normal"},
        },
    }
)
