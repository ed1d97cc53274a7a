"""Shared fixtures: a file-backed SQLite database per test and sample orders."""

import pytest

from orderstore.db import make_engine
from orderstore.domain import Address, CartItem, CreditCardInfo, Money
from orderstore.repository import OrderStore
from orderstore.schema import init_db


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    """Engine with the order schema in place."""
    init_db(engine)
    return engine


@pytest.fixture
def store(db):
    return OrderStore(db)


@pytest.fixture
def order_args():
    """Keyword arguments for a valid ``save_order`` call."""
    return {
        "order_id": "ord-0001",
        "user_id": "user-42",
        "email": "someone@example.com",
        "address": Address(
            street_address="1600 Amphitheatre Parkway",
            city="Mountain View",
            state="CA",
            country="United States",
            zip_code="94043",
        ),
        "credit_card": CreditCardInfo(
            number="4111111111111111",
            cvv="123",
            expiration_month=1,
            expiration_year=2030,
        ),
        "total": Money(currency_code="USD", units=10, nanos=500_000_000),
        "items": [CartItem("OLJCESPC7Z", 2), CartItem("66VCHSJNUP", 1)],
        "tracking_id": "TRK-123-456",
    }
