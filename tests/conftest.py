import os

# must be set before storefront is imported, settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["PAYMENT_GATEWAY"] = "fake"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from storefront.api import create_app  # noqa: E402
from storefront.api.deps import get_gateway, get_lock_service, get_notification_service  # noqa: E402
from storefront.data.database import Base, get_db, init_db, make_engine  # noqa: E402
from storefront.data.models.product import ProductModel  # noqa: E402
from storefront.data.models.user import UserModel  # noqa: E402
from storefront.services.payment_gateway import FakePaymentGateway  # noqa: E402


class FakeLockService:
    """In-memory stand-in for the redis merge guard."""

    def __init__(self):
        self.held: dict[str, str] = {}

    def acquire_merge_lock(self, session_id, user_id, ttl):
        key = f"cart-merge:{session_id}"
        if key in self.held:
            return False
        self.held[key] = str(user_id)
        return True

    def release_merge_lock(self, session_id, user_id):
        key = f"cart-merge:{session_id}"
        if self.held.get(key) == str(user_id):
            del self.held[key]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.confirmations: list[tuple] = []
        self.status_updates: list[tuple] = []

    def send_order_confirmation(self, order_id, recipient):
        self.confirmations.append((order_id, recipient))

    def send_status_update(self, order_id, status, tracking_number=None):
        self.status_updates.append((order_id, status, tracking_number))


@pytest.fixture()
def engine():
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture()
def make_product(db):
    def _make(name="Lavender Calm", price="10.00", stock=10, is_active=True, **extra):
        product = ProductModel(
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            is_active=is_active,
            mood_category=extra.pop("mood_category", "relaxing"),
            product_type=extra.pop("product_type", "container"),
            **extra,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(email=None, is_admin=False):
        counter["n"] += 1
        user = UserModel(
            email=email or f"shopper{counter['n']}@example.com",
            first_name="Test",
            last_name=f"User{counter['n']}",
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def lock_service():
    return FakeLockService()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def gateway():
    return FakePaymentGateway()


@pytest.fixture()
def client(db, lock_service, notifier, gateway):
    app = create_app()

    def _db():
        yield db

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_gateway] = lambda: gateway

    return TestClient(app)
