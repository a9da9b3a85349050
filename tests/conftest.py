"""Pytest fixtures: test client, in-memory SQLite, fake push transport."""
import os
import threading

import pytest
from fastapi.testclient import TestClient

# In-memory SQLite and dummy VAPID keys (must be set before the app is imported)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("VAPID_PUBLIC_KEY", "BTestPublicKey")
os.environ.setdefault("VAPID_PRIVATE_KEY", "test-private-key")
os.environ.setdefault("PUSH_MAX_WORKERS", "4")
# High enough that no test trips the subscription endpoint limit
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")

from sqlmodel import Session, SQLModel, select

from courier_push.api.deps import get_dispatcher
from courier_push.core.database import engine
from courier_push.main import app
from courier_push.models import Order, Profile, PushSubscription
from courier_push.services.dispatcher import PushDeliveryError, PushDispatcher


class FakeTransport:
    """Records deliveries; endpoints listed in `failures` raise with that status."""

    def __init__(self):
        self.failures: dict[str, int | None] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def fail(self, endpoint: str, status_code: int | None) -> None:
        self.failures[endpoint] = status_code

    def __call__(self, subscription_info: dict, payload: str) -> None:
        endpoint = subscription_info["endpoint"]
        with self._lock:
            self.calls.append((endpoint, payload))
        if endpoint in self.failures:
            raise PushDeliveryError("push rejected", status_code=self.failures[endpoint])

    @property
    def endpoints(self) -> list[str]:
        return [e for e, _ in self.calls]


@pytest.fixture(autouse=True)
def _fresh_tables():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def dispatcher(transport):
    return PushDispatcher(transport, app_name="MyPartsRunner", max_workers=4)


@pytest.fixture(scope="function")
def client(dispatcher):
    """TestClient with the fake transport in place of pywebpush."""
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def seed():
    """seed(obj, ...) persists rows in a short-lived session."""
    def _seed(*rows):
        with Session(engine) as db:
            for row in rows:
                db.add(row)
            db.commit()
    return _seed


@pytest.fixture
def subscription_endpoints():
    """Endpoints currently stored, optionally for one user."""
    def _endpoints(user_id: str | None = None) -> list[str]:
        with Session(engine) as db:
            stmt = select(PushSubscription)
            if user_id is not None:
                stmt = stmt.where(PushSubscription.user_id == user_id)
            return sorted(s.endpoint for s in db.exec(stmt).all())
    return _endpoints


def make_subscription(user_id: str, endpoint: str) -> PushSubscription:
    return PushSubscription(user_id=user_id, endpoint=endpoint, p256dh="p256dh-key", auth="auth-secret")


@pytest.fixture
def order_scenario(seed):
    """Pending unassigned order o1 and driver u1 with one device."""
    seed(
        Order(id="o1", status="pending", driver_id=None),
        Profile(id="u1", user_type="driver"),
        make_subscription("u1", "https://push.example.com/u1"),
    )


@pytest.fixture
def make_sub():
    return make_subscription
