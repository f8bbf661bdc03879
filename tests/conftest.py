from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from eatery.data.database import Database
from eatery.data.models.menu_item import MenuItemModel
from eatery.main import create_app

from helpers import WEBHOOK_SECRET, FakeEventGuard, FakeNotifier


@pytest.fixture
def database():
    db = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def menu(session):
    items = [
        MenuItemModel(id="burger", name="Classic Burger", price=Decimal("10.00"), category="main"),
        MenuItemModel(id="fries", name="Masala Fries", price=Decimal("3.75"), category="side"),
        MenuItemModel(id="lassi", name="Mango Lassi", price=Decimal("4.50"), category="beverage"),
        MenuItemModel(id="retired", name="Old Special", price=Decimal("12.00"), category="main", available=False),
    ]
    session.add_all(items)
    session.commit()
    return {item.id: item for item in items}


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def event_guard():
    return FakeEventGuard()


@pytest.fixture
def stripe_config(monkeypatch):
    monkeypatch.setattr("eatery.services.payment_service.STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr("eatery.services.payment_service.STRIPE_SECRET_KEY", "sk_test_123")


@pytest.fixture
def client(database, menu, notifier, event_guard, stripe_config):
    app = create_app(database=database, notifier=notifier, event_guard=event_guard)
    with TestClient(app) as c:
        yield c
