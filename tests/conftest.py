# wholesale_pos/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets its own temp-file SQLite DB (WAL + FKs like production)
# - Repos share one Store, exactly as the app wires them
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# ---------------------------------------------------------------------

from __future__ import annotations

import os

# Headless runs (CI, containers) have no display; let Qt render offscreen.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from wholesale_pos.database import Store
from wholesale_pos.database.repositories import (
    BillsRepo,
    ContactsRepo,
    CustomersRepo,
    ProductsRepo,
    SuppliersRepo,
)


@pytest.fixture()
def store(tmp_path):
    s = Store(tmp_path / "test.db")
    s.open()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def products(store):
    return ProductsRepo(store)


@pytest.fixture()
def customers(store):
    return CustomersRepo(store)


@pytest.fixture()
def suppliers(store):
    return SuppliersRepo(store)


@pytest.fixture()
def contacts(store):
    return ContactsRepo(store)


@pytest.fixture()
def bills(store):
    return BillsRepo(store)


# ---------- Handy seed ----------
@pytest.fixture()
def ids(products, customers) -> dict:
    """A customer and two products most bill tests start from."""
    return {
        "cust": customers.create_customer("Ravi Traders", "9800000001"),
        "rice": products.create_product("Rice 25kg", 1300, 1200, 1000, 5, "bag", "Grains"),
        "oil": products.create_product("Sunflower Oil 1L", 180, 160, 140, 50, "bottle", "Oils"),
    }
