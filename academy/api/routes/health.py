from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from academy.core.config import get_settings
from academy.db.repo.outbox_events_repo import OutboxEventsRepo
from academy.db.session import SessionLocal
from academy.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

CheckResult = dict[str, Any]
Check = Callable[[], Awaitable[CheckResult]]


def _failed(check: str, exc: Exception) -> CheckResult:
    # Connection errors carry DSNs; only the exception type leaves the process.
    logger.warning("health_check_failed", check=check, error_type=type(exc).__name__)
    return {"status": "failed", "error": type(exc).__name__}


async def _check_database() -> CheckResult:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        return _failed("database", exc)
    return {"status": "ok"}


async def _check_redis() -> CheckResult:
    redis_client: Redis | None = None
    try:
        redis_client = Redis.from_url(get_settings().redis_url)
        pong = await redis_client.ping()
    except Exception as exc:
        return _failed("redis", exc)
    finally:
        if redis_client is not None:
            await redis_client.aclose()
    if pong is not True:
        return {"status": "failed", "error": "unexpected redis ping response"}
    return {"status": "ok"}


async def _check_celery_worker() -> CheckResult:
    def _ping() -> dict[str, Any]:
        inspector = celery_app.control.inspect(timeout=1.0)
        return (inspector.ping() if inspector is not None else None) or {}

    try:
        replies = await asyncio.to_thread(_ping)
    except Exception as exc:
        return _failed("celery", exc)
    if not replies:
        return {"status": "failed", "error": "no celery workers responded to ping"}
    return {"status": "ok", "workers": len(replies)}


async def _check_outbox_backlog(now_utc: datetime | None = None) -> CheckResult:
    """Fails once the oldest undelivered event is older than the allowed age."""
    try:
        async with SessionLocal() as session:
            pending, oldest_pending, failed = await OutboxEventsRepo.backlog_stats(session)
    except Exception as exc:
        return _failed("outbox", exc)

    result: CheckResult = {"status": "ok", "pending": pending, "failed": failed}
    if oldest_pending is None:
        return result

    age_seconds = int(((now_utc or datetime.now(timezone.utc)) - oldest_pending).total_seconds())
    result["oldest_pending_age_seconds"] = age_seconds
    if age_seconds > get_settings().notifications_backlog_max_age_seconds:
        result["status"] = "failed"
        result["error"] = "outbox backlog is not draining"
    return result


def _liveness_checks() -> dict[str, Check]:
    return {"database": _check_database, "redis": _check_redis}


def _readiness_checks() -> dict[str, Check]:
    return {
        **_liveness_checks(),
        "celery": _check_celery_worker,
        "outbox": _check_outbox_backlog,
    }


async def _report(checks: dict[str, Check], *, ok: str, not_ok: str) -> JSONResponse:
    names = list(checks)
    results = dict(zip(names, await asyncio.gather(*(checks[name]() for name in names))))
    healthy = all(result.get("status") == "ok" for result in results.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok if healthy else not_ok, "checks": results},
    )


@router.get("/health")
async def health() -> JSONResponse:
    return await _report(_liveness_checks(), ok="ok", not_ok="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    return await _report(_readiness_checks(), ok="ready", not_ok="not_ready")
