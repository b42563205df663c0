from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from academy.db.session import dispose_engine

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def run_async_job(job: Callable[[], Awaitable[T]], *, job_name: str) -> T:
    """Run one async job body on a fresh event loop from a Celery worker thread.

    The job is built inside the new loop and the engine pool is disposed on
    both sides of it, since pooled connections are bound to the loop that
    opened them.
    """

    async def _run() -> T:
        await dispose_engine()
        try:
            return await job()
        finally:
            await dispose_engine()

    started = time.monotonic()
    try:
        return asyncio.run(_run())
    except Exception:
        logger.exception(
            "async_job_failed",
            job=job_name,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        raise
