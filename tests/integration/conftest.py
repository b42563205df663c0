from __future__ import annotations

import pytest

import academy.db.models  # noqa: F401
from academy.db.models.base import Base
from academy.db.session import engine


@pytest.fixture(autouse=True)
async def fresh_schema() -> None:
    # Dispose pooled connections between tests; each test runs on its own event loop.
    await engine.dispose()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()
