from __future__ import annotations

import pytest

from wholesale_pos.constants import DEFAULT_MIN_STOCK
from wholesale_pos.errors import InvariantViolation, NotFound, ValidationError


def test_create_and_get_product(products):
    pid = products.create_product(" Rice 25kg ", 1300, 1200, 1000, 5, "bag", "Grains")
    assert isinstance(pid, int)
    p = products.get(pid)
    assert p.name == "Rice 25kg"
    assert p.sell_price == 1200
    assert p.stock == 5
    assert p.min_stock == DEFAULT_MIN_STOCK
    assert p.is_low


@pytest.mark.parametrize(
    "args",
    [
        ("", 10, 10, 10, 1, "pc", "Misc"),
        ("Pen", -1, 10, 10, 1, "pc", "Misc"),
        ("Pen", 10, "x", 10, 1, "pc", "Misc"),
        ("Pen", 10, 10, 10, -1, "pc", "Misc"),
        ("Pen", 10, 10, 10, 2.5, "pc", "Misc"),
    ],
)
def test_create_rejects_bad_input(products, args):
    with pytest.raises(ValidationError):
        products.create_product(*args)
    assert products.list_products() == []


def test_update_product_overwrites_fields(products):
    pid = products.create_product("Pen", 10, 8, 5, 100, "pc", "Stationery", min_stock=20)
    products.update_product(pid, "Blue Pen", 12, 9, 6, 90, "pc", "Stationery", min_stock=15)
    p = products.require(pid)
    assert (p.name, p.mrp, p.sell_price, p.stock, p.min_stock) == ("Blue Pen", 12, 9, 90, 15)


def test_update_missing_product_raises_not_found(products):
    with pytest.raises(NotFound):
        products.update_product(999, "Ghost", 1, 1, 1, 1, "pc", "Misc")


def test_adjust_stock(products):
    pid = products.create_product("Pen", 10, 8, 5, 100, "pc", "Stationery")
    products.adjust_stock(pid, 0)
    assert products.require(pid).stock == 0

    with pytest.raises(InvariantViolation):
        products.adjust_stock(pid, -1)
    assert products.require(pid).stock == 0

    with pytest.raises(NotFound):
        products.adjust_stock(999, 3)


def test_low_stock_lists_emptiest_first(products):
    products.create_product("Plenty", 1, 1, 1, 500, "pc", "Misc", min_stock=10)
    products.create_product("Few", 1, 1, 1, 7, "pc", "Misc", min_stock=10)
    products.create_product("AtLimit", 1, 1, 1, 10, "pc", "Misc", min_stock=10)
    products.create_product("None", 1, 1, 1, 0, "pc", "Misc", min_stock=3)
    names = [p.name for p in products.list_low_stock()]
    assert names == ["None", "Few", "AtLimit"]


def test_search_and_category_lookups(products):
    products.create_product("Basmati Rice", 1, 1, 1, 1, "bag", "Grains")
    products.create_product("Brown Rice", 1, 1, 1, 1, "bag", "Grains")
    products.create_product("Mustard Oil", 1, 1, 1, 1, "bottle", "Oils")
    assert [p.name for p in products.search_by_name("rice")] == ["Basmati Rice", "Brown Rice"]
    assert [p.name for p in products.list_by_category("Oils")] == ["Mustard Oil"]
    assert products.find_by_name("Brown Rice").category == "Grains"
    assert products.find_by_name("brown rice") is None


def test_delete_product(products):
    pid = products.create_product("Pen", 10, 8, 5, 100, "pc", "Stationery")
    products.delete_product(pid)
    assert products.get(pid) is None
    with pytest.raises(NotFound):
        products.require(pid)
