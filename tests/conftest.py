from decimal import Decimal

import pytest

from app import create_app
from flowershop.auth import issue_token
from flowershop.config import AppConfig
from flowershop.db.session import drop_all, get_session
from flowershop.models import Address, Product, User


TEST_SECRET = "test-secret"


@pytest.fixture
def config():
    return AppConfig(database_url="sqlite://", jwt_secret=TEST_SECRET, log_level="ERROR")


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    yield app
    drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def components(app):
    return app.extensions["flowershop_components"]


@pytest.fixture
def seed(app):
    """Users, products and addresses shared by most tests; returns their ids."""
    with get_session() as s:
        users = {
            "customer": User(name="Ana Cruz", email="ana@example.com", role="customer"),
            "other": User(name="Ben Reyes", email="ben@example.com", role="customer"),
            "employee": User(name="Cora Staff", email="cora@example.com", role="employee"),
            "admin": User(name="Dan Admin", email="dan@example.com", role="admin"),
        }
        products = {
            "rose": Product(name="Red Rose Bouquet", price=Decimal("1500.00"), stock_quantity=10),
            "tulip": Product(name="Tulip Bunch", price=Decimal("1000.00"), stock_quantity=5),
            "lily": Product(name="Lily Basket", price=Decimal("500.00"), stock_quantity=3, is_active=False),
            "orchid": Product(name="Orchid Pot", price=Decimal("2200.00"), stock_quantity=1),
            "ribbon": Product(name="Satin Ribbon", price=Decimal("0.10"), stock_quantity=100),
        }
        s.add_all(list(users.values()) + list(products.values()))
        s.flush()
        addresses = {
            "home": Address(user_id=users["customer"].id, street="12 Mabini St", city="Quezon City", province="Metro Manila"),
            "other_home": Address(user_id=users["other"].id, street="8 Rizal Ave", city="Cebu City", province="Cebu"),
        }
        s.add_all(list(addresses.values()))
        s.flush()
        ids = {name: u.id for name, u in users.items()}
        ids.update({name: p.id for name, p in products.items()})
        ids.update({name: a.id for name, a in addresses.items()})
    return ids


@pytest.fixture
def headers(seed):
    def _headers(who="customer", role=None):
        role = role or {"other": "customer"}.get(who, who)
        token = issue_token(seed[who], role, secret=TEST_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers
