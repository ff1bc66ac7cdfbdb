"""Pytest fixtures for kiosk tests."""

import asyncio
import os
import tempfile

# Must be set before kiosk.config is imported
os.environ.setdefault(
    "KIOSK_DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "kiosk-tests-unused.db"),
)
os.environ.setdefault("KIOSK_SECRET_KEY", "kiosk-test-secret-key-0123456789abcdef")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from kiosk.db.init_db import init_db
from kiosk.db.models import Category, Product
from kiosk.errors import PaymentSessionError
from kiosk.payments import CheckoutSession


class MemoryStorage:
    """Dict-backed stand-in for the browser cookie jar."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class FakePaymentClient:
    """Records checkout-session requests instead of calling the provider."""

    def __init__(self, url="https://pay.example.com/c/cs_test_1", error=None, paid=True):
        self.url = url
        self.error = error
        self.paid = paid
        self.sessions = []
        self.checked = []
        self.remote = {}

    def add_session(self, session_id, amount_total, reference):
        """Make the provider know a session, as if it had been created earlier."""
        self.remote[session_id] = {"id": session_id, "amount_total": amount_total, "client_reference_id": reference}

    async def create_session(self, amount_minor_units, label, success_url, cancel_url, reference=None):
        self.sessions.append({
            "amount_minor_units": amount_minor_units,
            "label": label,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "reference": reference,
        })
        if self.error:
            raise self.error
        session_id = f"cs_test_{len(self.sessions)}"
        self.add_session(session_id, amount_minor_units, reference)
        return CheckoutSession(id=session_id, url=self.url)

    async def retrieve_session(self, session_id):
        self.checked.append(session_id)
        if isinstance(self.paid, Exception):
            raise self.paid
        if session_id not in self.remote:
            raise PaymentSessionError("No such checkout session", status_code=404)
        return dict(self.remote[session_id], payment_status="paid" if self.paid else "unpaid")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def payment():
    return FakePaymentClient()


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'kiosk.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def products(session_factory):
    """Seed two categories and three products; returns {name: id}."""
    async def seed():
        async with session_factory() as db:
            burgers = Category(name="Burgers", slug="burger")
            drinks = Category(name="Drinks", slug="drinks")
            db.add_all([burgers, drinks])
            await db.flush()
            rows = [
                Product(name="Burger", price=10, image="burger_01", category_id=burgers.id),
                Product(name="Cheese Burger", price=12.5, image="burger_02", category_id=burgers.id),
                Product(name="Cola", price=2.5, image="https://res.cloudinary.com/demo/cola.jpg", category_id=drinks.id),
            ]
            db.add_all(rows)
            await db.commit()
            return {row.name: row.id for row in rows}

    return asyncio.run(seed())


@pytest.fixture
def client(session_factory, products, payment):
    """TestClient wired to the per-test database and the fake payment provider."""
    from kiosk.db.database import get_db
    from kiosk.dependencies import get_payment_client
    from kiosk.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_client] = lambda: payment
    yield TestClient(app)
    app.dependency_overrides.clear()


def run(coro):
    """Run a coroutine from a synchronous test."""
    return asyncio.run(coro)
