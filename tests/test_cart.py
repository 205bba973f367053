"""
Cart editing: merges, quantity/discount edits, stock guard and rebuilding a
cart from a saved bill.
"""
from __future__ import annotations

import pytest

from wholesale_pos.database.repositories import Bill, BillItem, Product
from wholesale_pos.errors import InsufficientStock, ValidationError
from wholesale_pos.modules.billing import Cart


def _product(pid=1, name="Rice 25kg", price=1200.0, stock=5) -> Product:
    return Product(
        product_id=pid, name=name, mrp=price, sell_price=price, purchase_price=price - 100,
        stock=stock, unit="bag", category="Grains", min_stock=10,
    )


def test_adding_same_product_merges_lines():
    cart = Cart()
    p = _product()
    k1 = cart.add_product(p, 2)
    k2 = cart.add_product(p, 1)
    assert k1 == k2 == p.product_id
    assert len(cart) == 1
    (line,) = cart.lines()
    assert line.quantity == 3
    assert line.product_id == p.product_id


def test_ad_hoc_items_are_keyed_by_name():
    cart = Cart()
    key = cart.add("  Loose sugar ", 42, 3)
    assert key == "Loose sugar"
    assert "Loose sugar" in cart
    assert cart.totals().subtotal == 126


def test_quantity_zero_removes_line_and_its_discount():
    cart = Cart()
    key = cart.add_product(_product(), 2)
    cart.set_item_discount(key, 10)
    cart.set_quantity(key, 0)
    assert key not in cart
    assert cart.item_discount(key) == 0.0

    # re-adding starts clean, without the old discount
    cart.add_product(_product(), 1)
    (line,) = cart.lines()
    assert line.discount_percent == 0.0


def test_negative_quantity_also_removes_line():
    cart = Cart()
    key = cart.add("Pen", 10, 4)
    cart.set_quantity(key, -3)
    assert not cart


def test_stock_guard_raises_insufficient_stock():
    cart = Cart()
    key = cart.add_product(_product(stock=5), 5)
    with pytest.raises(InsufficientStock) as ei:
        cart.set_quantity(key, 6)
    assert ei.value.available == 5
    assert ei.value.requested == 6
    assert cart.lines()[0].quantity == 5

    with pytest.raises(InsufficientStock):
        cart.add_product(_product(stock=5), 1)


def test_item_discount_validation():
    cart = Cart()
    key = cart.add("Pen", 10, 1)
    with pytest.raises(ValidationError):
        cart.set_item_discount(key, 101)
    with pytest.raises(ValidationError):
        cart.set_item_discount("missing", 5)
    cart.set_item_discount(key, 25)
    assert cart.item_discount(key) == 25
    cart.set_item_discount(key, None)
    assert cart.item_discount(key) == 0.0


def test_apply_discount_to_all():
    cart = Cart()
    a = cart.add("Pen", 10, 2)
    b = cart.add("Pad", 50, 1)
    cart.apply_discount_to_all(10)
    assert cart.item_discount(a) == cart.item_discount(b) == 10
    t = cart.totals()
    assert t.item_discount_amount == 7
    assert t.total_amount == 63

    with pytest.raises(ValidationError):
        cart.apply_discount_to_all(0)


def test_totals_follow_every_edit():
    cart = Cart()
    key = cart.add("Pen", 10, 2)
    cart.bill_discount_percent = 5
    assert cart.totals().total_amount == 19
    cart.set_rate(key, 20)
    assert cart.totals().total_amount == 38
    cart.set_quantity(key, 1)
    assert cart.totals().total_amount == 19


def test_bill_discount_setter_validates():
    cart = Cart()
    with pytest.raises(ValidationError):
        cart.bill_discount_percent = 120
    cart.bill_discount_percent = ""
    assert cart.bill_discount_percent == 0.0


def test_clear_resets_everything():
    cart = Cart()
    key = cart.add("Pen", 10, 2)
    cart.set_item_discount(key, 5)
    cart.bill_discount_percent = 3
    cart.clear()
    assert len(cart) == 0
    assert cart.bill_discount_percent == 0.0
    assert cart.totals().total_amount == 0


def test_from_bill_counts_held_quantity_as_available():
    bill = Bill(
        bill_id=7, customer_id=1, customer_name="Ravi", bill_type="Cash",
        billing_date="2024-05-01", total_amount=2052.0, bill_discount_percent=5.0,
        bill_discount_amount=108.0, subtotal=2400.0, item_discount_amount=240.0,
        items=[
            BillItem(1, 7, 3, "Rice 25kg", 2, 1200.0, 1080.0, 10.0, 240.0, 2160.0),
            BillItem(2, 7, None, "Loose sugar", 1, 0.0, 0.0, 0.0, 0.0, 0.0),
        ],
    )
    cart = Cart.from_bill(bill, {3: 1})
    assert cart.bill_discount_percent == 5.0
    assert cart.item_discount(3) == 10.0
    assert "Loose sugar" in cart

    # 1 left on the shelf + 2 already on this bill
    cart.set_quantity(3, 3)
    with pytest.raises(InsufficientStock):
        cart.set_quantity(3, 4)

    t = Cart.from_bill(bill).totals()
    assert t.total_amount == bill.total_amount


def test_from_bill_keeps_split_rate_lines_apart():
    bill = Bill(
        bill_id=9, customer_id=1, customer_name="Ravi", bill_type="Cash",
        billing_date="2024-05-01", total_amount=500.0, bill_discount_percent=0.0,
        bill_discount_amount=0.0, subtotal=520.0, item_discount_amount=20.0,
        items=[
            BillItem(11, 9, 4, "Sunflower Oil 1L", 2, 160.0, 160.0, 0.0, 0.0, 320.0),
            BillItem(12, 9, 4, "Sunflower Oil 1L", 2, 100.0, 90.0, 10.0, 20.0, 180.0),
        ],
    )
    cart = Cart.from_bill(bill, {4: 1})
    assert len(cart) == 2
    assert [(ln.base_price, ln.quantity, ln.discount_percent) for ln in cart.lines()] == [
        (160.0, 2, 0.0),
        (100.0, 2, 10.0),
    ]
    assert cart.totals().total_amount == bill.total_amount

    # 1 on the shelf + 4 held across both lines: 5 in total for the product
    second = (4, 12)
    cart.set_quantity(second, 3)
    with pytest.raises(InsufficientStock) as ei:
        cart.set_quantity(second, 4)
    assert ei.value.requested == 6
    with pytest.raises(InsufficientStock):
        cart.add("Sunflower Oil 1L", 160, 1, product_id=4)
