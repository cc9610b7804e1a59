"""
Shared test fixtures for the FoodRescue test suite.

Every test gets its own in-memory SQLite database (aiosqlite + AsyncSession)
and an order engine whose simulated gateway answers instantly.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"
os.environ["PAYMENT_LATENCY_SECONDS"] = "0"
os.environ["SEED_DEMO_DATA"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from foodrescue.api.v1.deps import get_db, get_order_engine
from foodrescue.core.roles import Role
from foodrescue.core.security import create_access_token, get_password_hash
from foodrescue.db.base import Base
from foodrescue.main import app
from foodrescue.models.listing import FoodListing
from foodrescue.models.user import User
from foodrescue.services.orders import OrderIssuanceEngine
from foodrescue.services.payments import SimulatedPaymentGateway
from foodrescue.services.pickup_codes import PickupCodeGenerator

TEST_PASSWORD = "password123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> SimulatedPaymentGateway:
    return SimulatedPaymentGateway(latency_seconds=0)


@pytest.fixture
def order_engine(gateway) -> OrderIssuanceEngine:
    return OrderIssuanceEngine(gateway=gateway, codes=PickupCodeGenerator(length=6))


@pytest.fixture
async def async_client(session_factory, order_engine) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_order_engine] = lambda: order_engine

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Data helpers ────────────────────────────────────────────────────
@pytest.fixture
def make_user(db_session):
    async def _make_user(
        role: Role = Role.CONSUMER,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        **fields,
    ) -> User:
        user = User(
            email=email or f"{role.value}-{os.urandom(4).hex()}@example.com",
            hashed_password=get_password_hash(password),
            full_name=fields.pop("full_name", f"Test {role.value}"),
            role=role.value,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_listing(db_session):
    async def _make_listing(seller: User, **fields) -> FoodListing:
        values = {
            "name": "Jollof Rice & Beef",
            "description": "Smoky party jollof",
            "original_price": 1000,
            "discounted_price": 500,
            "quantity_available": 10,
        }
        values.update(fields)
        listing = FoodListing(seller_id=seller.id, **values)
        db_session.add(listing)
        await db_session.commit()
        await db_session.refresh(listing)
        return listing

    return _make_listing


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def headers_for():
    return auth_headers
