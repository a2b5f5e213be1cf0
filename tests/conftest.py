"""Pytest bootstrap configuration.

Gateway secrets and the database URL are set before any module that reads
application settings is imported.
"""
import os

os.environ["RAZORPAY__KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY__KEY_SECRET"] = "test_key_secret"
os.environ["RAZORPAY__WEBHOOK_SECRET"] = "test_webhook_secret"
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///./test_payments.db")

from functools import partial
from typing import Optional

import httpx
import pytest
import pytest_asyncio

from application.dtos.payments import GatewayOrder, GatewayPayment
from domain.payment.entity import Booking, Campaign, Event
from infrastructure.database import build_engine, build_session_factory, create_tables
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


class StubGateway:
    """In-memory gateway double that records calls."""

    provider = "stub"
    key_id = "rzp_test_key"

    def __init__(self, payments: Optional[dict[str, GatewayPayment]] = None):
        self.payments = payments or {}
        self.orders: list[dict] = []
        self.fetched: list[str] = []

    async def create_order(self, *, amount_minor_units: int, currency: str, notes: dict[str, str]) -> GatewayOrder:
        self.orders.append({"amount": amount_minor_units, "currency": currency, "notes": notes})
        return GatewayOrder(id=f"order_{len(self.orders)}", amount=amount_minor_units, currency=currency, status="created")

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        self.fetched.append(payment_id)
        return self.payments[payment_id]

    async def aclose(self) -> None:
        return None


@pytest_asyncio.fixture
async def engine(tmp_path):
    # File-backed so concurrent sessions get real SQLite locking
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path}/payments.db", echo=False)
    await create_tables(eng)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def uow_factory(engine):
    return partial(SQLAlchemyUnitOfWork, build_session_factory(engine))


@pytest_asyncio.fixture
async def seeded(uow_factory):
    """One campaign, one event with a pending 3-seat booking."""
    async with uow_factory() as uow:
        await uow.campaigns.add(Campaign(campaign_id="camp_1", title="Clean water"))
        await uow.events.add(Event(event_id="evt_1", title="Charity gala"))
        await uow.bookings.add(Booking(booking_id="bk_1", event_id="evt_1", seats=3))
    return uow_factory


@pytest.fixture
def stub_gateway():
    return StubGateway()


@pytest_asyncio.fixture
async def client(seeded, stub_gateway):
    from api.dependencies import get_gateway, get_uow_factory
    from main import app

    app.dependency_overrides[get_uow_factory] = lambda: seeded
    app.dependency_overrides[get_gateway] = lambda: stub_gateway
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def read_store(uow_factory):
    """Read-side helpers over a fresh read-only unit of work."""

    class _Reader:
        async def total(self, campaign_id: str = "camp_1"):
            async with uow_factory(readonly=True) as uow:
                return (await uow.campaigns.get(campaign_id)).total_raised

        async def donations(self, campaign_id: str = "camp_1"):
            async with uow_factory(readonly=True) as uow:
                return await uow.donations.list_by_campaign(campaign_id)

        async def booking(self, booking_id: str = "bk_1"):
            async with uow_factory(readonly=True) as uow:
                return await uow.bookings.get(booking_id)

        async def event(self, event_id: str = "evt_1"):
            async with uow_factory(readonly=True) as uow:
                return await uow.events.get(event_id)

    return _Reader()
