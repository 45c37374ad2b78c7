"""
Pytest fixtures for test database, client, and seat configuration.

Each test gets its own file-backed SQLite database (via aiosqlite) so that
separate sessions really are separate connections, which the race tests
rely on. Redis is disabled; the availability preview reads the ledger
directly.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_party.db"
os.environ["ADMIN_TOKEN"] = "test-admin-token"

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.models.seat_tier import SeatTier  # noqa: F401 - registers tables on the metadata
from app.services.seat_ledger import sync_tier_rows
from app.services.tiers import TierTable, get_tier_table

VIP, CLOSE, COLLEAGUES, GENERAL = 3, 2, 1, 0

TIER_CAPACITIES = {VIP: 2, CLOSE: 1, COLLEAGUES: 1, GENERAL: 2}
TIER_NAMES = {VIP: "VIP", CLOSE: "Close Friends", COLLEAGUES: "Colleagues", GENERAL: "General"}
INVITATION_CODES = {"VIP-2026": VIP, "CLOSE-2026": CLOSE, "WORK-2026": COLLEAGUES, "GEN-2026": GENERAL}

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-token"}


@pytest.fixture
def tier_table() -> TierTable:
    """VIP:2, Close:1, Colleagues:1, General:2 (six seats in total)."""
    return TierTable(
        capacities=TIER_CAPACITIES,
        codes=INVITATION_CODES,
        names=TIER_NAMES,
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path, tier_table) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh database with the ledger seeded from `tier_table`."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'party.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        await sync_tier_rows(session, tier_table)

    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, tier_table) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB and tier table dependencies pointed at the test setup."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tier_table] = lambda: tier_table

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def registration_payload(n: int, code: str | None = None, **extra) -> dict:
    payload = {"name": f"Guest {n}", "email": f"guest{n}@example.com"}
    if code is not None:
        payload["invitation_code"] = code
    payload.update(extra)
    return payload


async def occupancy(factory) -> dict[int, int]:
    from app.services.seat_ledger import load_occupancy

    async with factory() as session:
        return await load_occupancy(session)
