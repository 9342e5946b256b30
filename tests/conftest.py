"""
Pytest configuration and fixtures for all tests
"""
import copy
import inspect
import os
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncGenerator, Generator, List

import pytest

# Set testing environment before the app settings are loaded
os.environ["DEBUG"] = "1"
os.environ["MIRROR_SYNC_INTERVAL_MINUTES"] = "0"

from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import ezyeats.models  # noqa: F401
from ezyeats.api.deps import get_live_sync
from ezyeats.core.exceptions import LiveSyncError
from ezyeats.core.live_sync import split_path
from ezyeats.core.rate_limit import limiter
from ezyeats.core.security import Customer, create_access_token
from ezyeats.database import Base, get_db
from ezyeats.models.menu_item import MenuItem
from ezyeats.models.shop import Shop
from ezyeats.services.cart_store import CartRegistry

# Test database URL (SQLite in memory for isolation)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeLiveSubscription:
    """Listener handle returned by FakeLiveSync.subscribe"""

    def __init__(self, live: "FakeLiveSync", path: str, callback):
        self._live = live
        self.path = path
        self.callback = callback
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    async def close(self):
        if self._closed:
            return
        self._closed = True
        self._live.listeners.get(self.path, []).remove(self)


class FakeLiveSync:
    """
    In-memory stand-in for RedisLiveSync.

    ``data`` maps an index path to ``{child_id: record}``. Writes notify
    listeners of the parent path synchronously, which keeps ordering
    deterministic in tests. ``available = False`` makes every call raise
    LiveSyncError; ``fail_prefixes`` fails only matching paths.
    """

    def __init__(self):
        self.data = {}
        self.listeners = {}
        self.writes: List[str] = []
        self.available = True
        self.fail_prefixes: List[str] = []

    @property
    def is_available(self) -> bool:
        return self.available

    def _check(self, path: str):
        if not self.available:
            raise LiveSyncError("Live-sync store is not connected")
        if any(path.startswith(prefix) for prefix in self.fail_prefixes):
            raise LiveSyncError(f"Write rejected: {path}")

    def seed(self, path: str, record: dict):
        parent, leaf = split_path(path)
        self.data.setdefault(parent, {})[leaf] = copy.deepcopy(record)

    async def write(self, path: str, record: dict):
        self._check(path)
        self.seed(path, record)
        self.writes.append(path)
        parent, _ = split_path(path)
        await self._notify(parent)

    async def update(self, path: str, fields: dict):
        current = await self.read(path)
        record = dict(current) if isinstance(current, dict) else {}
        record.update(fields)
        await self.write(path, record)

    async def read(self, path: str):
        self._check(path)
        key = path.strip("/")
        if self.data.get(key):
            return copy.deepcopy(self.data[key])
        if "/" not in key:
            return None
        parent, leaf = split_path(key)
        return copy.deepcopy(self.data.get(parent, {}).get(leaf))

    async def subscribe(self, path: str, callback) -> FakeLiveSubscription:
        self._check(path)
        subscription = FakeLiveSubscription(self, path, callback)
        self.listeners.setdefault(path, []).append(subscription)
        value = await self.read(path)
        if value is not None:
            await self._call(callback, value)
        return subscription

    async def _notify(self, path: str):
        for subscription in list(self.listeners.get(path, [])):
            await self._call(subscription.callback, await self.read(path))

    @staticmethod
    async def _call(callback, value):
        result = callback(value)
        if inspect.isawaitable(result):
            await result


@pytest.fixture
async def engine():
    """Fresh in-memory database per test"""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def live() -> FakeLiveSync:
    return FakeLiveSync()


@pytest.fixture
def customer() -> Customer:
    return Customer(id="customer-1", email="student@example.edu")


@pytest.fixture
def other_customer() -> Customer:
    return Customer(id="customer-2", email="classmate@example.edu")


# Token fixtures
@pytest.fixture
def customer_token(customer: Customer) -> str:
    """Create JWT token for the test customer"""
    return create_access_token({"customer_id": customer.id, "email": customer.email})


@pytest.fixture
def auth_headers(customer_token: str) -> dict:
    return {"Authorization": f"Bearer {customer_token}"}


@pytest.fixture
def other_headers(other_customer: Customer) -> dict:
    token = create_access_token({"customer_id": other_customer.id, "email": other_customer.email})
    return {"Authorization": f"Bearer {token}"}


# Catalogue fixtures
@pytest.fixture
async def test_shop(db_session: AsyncSession) -> Shop:
    """Create a test shop"""
    shop = Shop(
        id="shop-1",
        name="Campus Grill",
        description="Burgers and fries",
        category="Restaurant",
        location="Student Union, Level 1",
        rating=4.5,
        is_open=True,
        opening_time="08:00",
        closing_time="20:00"
    )
    db_session.add(shop)
    await db_session.commit()
    return shop


@pytest.fixture
async def second_shop(db_session: AsyncSession) -> Shop:
    shop = Shop(
        id="shop-2",
        name="Bean There",
        category="Cafe",
        location="Library Annex",
        is_open=True
    )
    db_session.add(shop)
    await db_session.commit()
    return shop


@pytest.fixture
async def menu_items(db_session: AsyncSession, test_shop: Shop) -> dict:
    """Menu of the test shop keyed by short name"""
    items = {
        "burger": MenuItem(
            id="item-burger", shop_id=test_shop.id, name="Classic Burger",
            description="Beef patty, cheddar", price=Decimal("100.00"), category="Mains"
        ),
        "fries": MenuItem(
            id="item-fries", shop_id=test_shop.id, name="Fries",
            description="Crispy shoestring fries", price=Decimal("50.00"), category="Sides"
        ),
        "soda": MenuItem(
            id="item-soda", shop_id=test_shop.id, name="Soda",
            price=Decimal("2.50"), category="Drinks"
        ),
        "special": MenuItem(
            id="item-special", shop_id=test_shop.id, name="Chef Special",
            price=Decimal("12.00"), category="Mains", is_available=False
        ),
    }
    db_session.add_all(items.values())
    await db_session.commit()
    return items


@pytest.fixture
async def coffee(db_session: AsyncSession, second_shop: Shop) -> MenuItem:
    item = MenuItem(
        id="item-latte", shop_id=second_shop.id, name="Latte",
        price=Decimal("4.00"), category="Coffee"
    )
    db_session.add(item)
    await db_session.commit()
    return item


def _prepare_app(live: FakeLiveSync):
    from ezyeats.main import app

    app.state.carts = CartRegistry()
    app.dependency_overrides[get_live_sync] = lambda: live
    limiter.enabled = False
    return app


@pytest.fixture
async def client(db_session: AsyncSession, live: FakeLiveSync) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client on the app with database and live-sync overrides"""

    async def override_get_db():
        yield db_session

    app = _prepare_app(live)
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def ws_client(live: FakeLiveSync) -> Generator:
    """Test client for WebSocket tests; the feed reads only the live-sync double"""

    # Mock the lifespan to skip startup/shutdown events
    @asynccontextmanager
    async def mock_lifespan(app):
        yield

    app = _prepare_app(live)
    app.router.lifespan_context = mock_lifespan

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
