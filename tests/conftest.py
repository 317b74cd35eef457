"""
Shared test fixtures.

Provides:
  • a temporary SQLite database (aiosqlite) with the schema created
  • a seeded approved venue and an hourly court
  • fresh service instances with the payment gateway disabled
  • an httpx AsyncClient over the ASGI app with get_db pointed at the temp DB

Settings are read at import time, so the environment is prepared before any
courtbook module is imported.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import courtbook.models  # noqa: F401  registers tables
from courtbook.core.database import Base, get_db
from courtbook.main import app
from courtbook.models.court import Court
from courtbook.models.venue import Venue
from courtbook.services.availability_service import AvailabilityService
from courtbook.services.payment_gateway import StripeGateway
from courtbook.services.reconciliation import PaymentReconciliationHandler
from courtbook.services.reservation_service import ReservationService
from tests.helpers import WEBHOOK_SECRET


# ── Database ───────────────────────────────────────────────────────────────


@pytest.fixture()
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions see each other's commits."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ── Reference data ─────────────────────────────────────────────────────────
#
# Seeded through their own sessions so the returned rows are detached and
# unaffected by rollbacks in the session under test.


@pytest.fixture()
async def venue(session_factory):
    async with session_factory() as session:
        venue = Venue(name="Riverside Sports Arena", timezone="UTC", status="approved")
        session.add(venue)
        await session.commit()
        await session.refresh(venue)
        return venue


@pytest.fixture()
def make_court(session_factory, venue):
    """Factory for courts at the seeded venue; keyword arguments override the defaults."""

    async def _make_court(**overrides):
        fields = dict(
            venue_id=venue.id,
            name="Court 1",
            sport_type="badminton",
            price_per_hour=Decimal("100.00"),
            slot_duration_minutes=60,
            advance_booking_days=30,
            capacity=4,
        )
        fields.update(overrides)
        async with session_factory() as session:
            court = Court(**fields)
            session.add(court)
            await session.commit()
            await session.refresh(court)
            return court

    return _make_court


@pytest.fixture()
async def court(make_court):
    """Hourly court, 06:00-22:00 every day (settings defaults), 100 per hour."""
    return await make_court()


# ── Services ───────────────────────────────────────────────────────────────


@pytest.fixture()
def gateway():
    return StripeGateway(secret_key="", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture()
def reservations(gateway):
    return ReservationService(gateway=gateway, hold_minutes=30)


@pytest.fixture()
def availability():
    return AvailabilityService()


@pytest.fixture()
def reconciler(reservations):
    return PaymentReconciliationHandler(reservations=reservations)


# ── HTTP client ────────────────────────────────────────────────────────────


@pytest.fixture()
async def client(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
