import os

# Must be set before app settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CATEGORY_CACHE_ENABLED", "false")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_dummy")

from decimal import Decimal  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import stripe  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Order, User  # noqa: E402
from app.modules.catalog.cache import get_category_cache  # noqa: E402


class FakeCategoryCache:
    """In-memory stand-in for the Redis category cache."""

    def __init__(self) -> None:
        self.items: list[dict[str, Any]] | None = None
        self.invalidations = 0

    async def get_public(self) -> list[dict[str, Any]] | None:
        return self.items

    async def set_public(self, items: list[dict[str, Any]]) -> None:
        self.items = items

    async def invalidate(self) -> None:
        self.items = None
        self.invalidations += 1


class FakeStripe:
    """
    Minimal in-memory Stripe account.

    Objects are built with ``construct_from`` so they behave like real
    SDK responses (attribute access, JSON rendering, nested expansion).
    """

    KEY = "sk_test_dummy"

    def __init__(self) -> None:
        self.intents: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, dict[str, Any]] = {}
        self.refunds: list[dict[str, Any]] = []
        self.created_sessions: list[dict[str, Any]] = []
        self.created_intents: list[dict[str, Any]] = []
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_test_{self._counter}"

    # ----- seeding -----

    def add_intent(self, intent_id: str, status: str) -> None:
        self.intents[intent_id] = {
            "id": intent_id,
            "object": "payment_intent",
            "status": status,
            "amount": 1999,
            "currency": "usd",
        }

    def add_session(
        self,
        session_id: str,
        status: str,
        intent_id: str | None = None,
    ) -> None:
        self.sessions[session_id] = {
            "id": session_id,
            "object": "checkout.session",
            "status": status,
            "payment_intent": intent_id,
        }

    # ----- PaymentIntent -----

    def _intent(self, intent_id: str) -> stripe.PaymentIntent:
        return stripe.PaymentIntent.construct_from(dict(self.intents[intent_id]), self.KEY)

    def create_intent(self, **params: Any) -> stripe.PaymentIntent:
        intent_id = self._next_id("pi")
        self.created_intents.append(params)
        self.add_intent(intent_id, "requires_payment_method")
        self.intents[intent_id]["amount"] = params["amount"]
        self.intents[intent_id]["client_secret"] = f"{intent_id}_secret_abc"
        return self._intent(intent_id)

    def retrieve_intent(self, intent_id: str, **params: Any) -> stripe.PaymentIntent:
        if intent_id not in self.intents:
            raise stripe.InvalidRequestError(
                f"No such payment_intent: '{intent_id}'", "intent"
            )
        return self._intent(intent_id)

    def cancel_intent(self, intent_id: str, **params: Any) -> stripe.PaymentIntent:
        self.intents[intent_id]["status"] = "canceled"
        return self._intent(intent_id)

    # ----- Checkout Session -----

    def create_session(self, **params: Any) -> stripe.checkout.Session:
        session_id = self._next_id("cs")
        self.created_sessions.append(params)
        self.add_session(session_id, "open")
        self.sessions[session_id]["url"] = f"https://checkout.stripe.com/c/pay/{session_id}"
        return stripe.checkout.Session.construct_from(
            dict(self.sessions[session_id]), self.KEY
        )

    def retrieve_session(
        self,
        session_id: str,
        expand: list[str] | None = None,
        **params: Any,
    ) -> stripe.checkout.Session:
        if session_id not in self.sessions:
            raise stripe.InvalidRequestError(
                f"No such checkout.session: '{session_id}'", "session"
            )
        values = dict(self.sessions[session_id])
        intent_id = values.get("payment_intent")
        if intent_id and expand and "payment_intent" in expand:
            values["payment_intent"] = dict(self.intents[intent_id])
        return stripe.checkout.Session.construct_from(values, self.KEY)

    # ----- Refund -----

    def create_refund(self, payment_intent: str, **params: Any) -> stripe.Refund:
        refund = {
            "id": self._next_id("re"),
            "object": "refund",
            "status": "succeeded",
            "payment_intent": payment_intent,
        }
        self.refunds.append(refund)
        return stripe.Refund.construct_from(refund, self.KEY)


@pytest.fixture
def fake_stripe(monkeypatch: pytest.MonkeyPatch) -> FakeStripe:
    fake = FakeStripe()
    monkeypatch.setattr(stripe.PaymentIntent, "create", fake.create_intent)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake.retrieve_intent)
    monkeypatch.setattr(stripe.PaymentIntent, "cancel", fake.cancel_intent)
    monkeypatch.setattr(stripe.checkout.Session, "create", fake.create_session)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake.retrieve_session)
    monkeypatch.setattr(stripe.Refund, "create", fake.create_refund)
    return fake


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def category_cache() -> FakeCategoryCache:
    return FakeCategoryCache()


@pytest.fixture
async def client(db, category_cache):
    async def override_get_db():
        yield db
        await db.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_category_cache] = lambda: category_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def order(db) -> Order:
    user = User(email="alice@example.com", full_name="Alice")
    db.add(user)
    await db.flush()

    order = Order(
        order_number="ORD-1001",
        user_id=user.id,
        total_amount=Decimal("19.99"),
    )
    db.add(order)
    await db.flush()
    return order
