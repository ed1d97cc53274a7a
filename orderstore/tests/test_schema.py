"""Tests for schema bootstrap and the startup database check."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from orderstore.db import make_engine
from orderstore.errors import ErrorKind, StoreError
from orderstore.schema import init_db, wait_for_db


def _snapshot(engine):
    insp = inspect(engine)
    tables = sorted(insp.get_table_names())
    return {
        t: (
            sorted(c["name"] for c in insp.get_columns(t)),
            sorted(i["name"] for i in insp.get_indexes(t)),
        )
        for t in tables
    }


def test_init_db_creates_tables_and_indexes(engine):
    init_db(engine)
    snap = _snapshot(engine)
    assert set(snap) == {"orders", "order_items"}
    assert snap["orders"][1] == ["idx_orders_created_at", "idx_orders_user_id"]
    assert snap["order_items"][1] == ["idx_order_items_order_id"]
    assert "credit_card_number_masked" in snap["orders"][0]


def test_init_db_twice_is_idempotent(engine):
    init_db(engine)
    first = _snapshot(engine)
    init_db(engine)
    assert _snapshot(engine) == first


def test_order_items_reference_orders(engine):
    init_db(engine)
    fks = inspect(engine).get_foreign_keys("order_items")
    assert len(fks) == 1
    assert fks[0]["referred_table"] == "orders"
    assert fks[0]["constrained_columns"] == ["order_id"]


def test_item_without_order_is_rejected(db):
    with pytest.raises(IntegrityError):
        with db.begin() as conn:
            conn.execute(
                text("INSERT INTO order_items (order_id, product_id, quantity) VALUES ('missing', 'P1', 1)")
            )


def test_init_db_over_budget_is_fatal(engine):
    with pytest.raises(StoreError) as e:
        init_db(engine, timeout=0)
    assert e.value.kind == ErrorKind.SCHEMA_INIT
    assert inspect(engine).get_table_names() == []


def test_init_db_unreachable_database(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'missing' / 'orders.db'}")
    with pytest.raises(StoreError) as e:
        init_db(engine)
    assert e.value.kind == ErrorKind.SCHEMA_INIT
    assert e.value.__cause__ is not None


def test_wait_for_db_returns_when_reachable(engine):
    wait_for_db(engine, timeout=1)


def test_wait_for_db_gives_up_after_timeout(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'missing' / 'orders.db'}")
    with pytest.raises(StoreError) as e:
        wait_for_db(engine, timeout=0, interval=0)
    assert e.value.kind == ErrorKind.CONNECTION
