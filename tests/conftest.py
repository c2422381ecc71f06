import os

# Configure the app for tests before anything imports shared.config.settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["INTERNAL_SETUP_KEY"] = "test-setup-key"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["DEPOSIT_AMOUNT_EUR"] = "20.00"
os.environ["RESEND_API_KEY"] = "re_test_dummy"
os.environ["SHOP_TIMEZONE"] = "UTC"

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from services.order_service.models import Order
from shared.config.database import Base, build_engine, get_db

ADMIN_USERNAME = "fenelon"
ADMIN_PASSWORD = "stuffing-2024"
SECURITY_ANSWER = "Cranberry"

_intent_ids = itertools.count(1)


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(client):
    """A client holding a valid admin_session cookie."""
    resp = await client.post(
        "/api/admin/setup",
        json={
            "username": ADMIN_USERNAME,
            "password": ADMIN_PASSWORD,
            "securityAnswer": SECURITY_ANSWER,
        },
    )
    assert resp.status_code == 200, resp.text
    resp = await client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def make_order(session_factory):
    """Inserts an order directly; keyword arguments override the defaults."""

    async def _make_order(**overrides) -> Order:
        now = datetime.now(timezone.utc)
        fields = {
            "stripe_payment_intent_id": f"pi_test_{next(_intent_ids)}",
            "customer_name": "Mary Byrne",
            "customer_phone": "0871234567",
            "customer_email": "mary@example.com",
            "meat_type": "turkey",
            "cut": "Whole Turkey",
            "weight": "5",
            "pickup_date": now + timedelta(days=3),
            "amount_paid": 2000,
            "deposit_amount": "20",
            "currency": "EUR",
            "status": "paid",
            "is_finished": False,
            "version": 1,
            "created_at": now,
        }
        fields.update(overrides)
        async with session_factory() as session:
            order = Order(**fields)
            session.add(order)
            await session.commit()
            await session.refresh(order)
            return order

    return _make_order
