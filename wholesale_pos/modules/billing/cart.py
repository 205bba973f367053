"""
billing/cart.py

The pre-commit working set behind the billing and edit-bill screens.

The cart only stores inputs (name, rate, quantity, discount %). Totals are
priced from those inputs on every call, so a quantity or rate edit can never
leave a stale line total behind.

Lines are keyed by product id, or by name for ad-hoc items that are not in
the catalogue. A saved bill may carry the same product on several lines at
different rates; reopened for editing, each of those lines keeps its own key
(see Cart.from_bill) and stock is still checked per product.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional, Union

from ...errors import InsufficientStock, ValidationError
from ...utils.validators import is_whole_number, try_parse_float
from .pricing import BillTotals, CartLine, compute_totals, validate_percent

if TYPE_CHECKING:
    from ...database.repositories.bills_repo import Bill
    from ...database.repositories.products_repo import Product

Key = Union[int, str, tuple]


@dataclass
class _Entry:
    name: str
    base_price: float
    quantity: int
    product_id: int | None = None
    available: int | None = None


class Cart:
    def __init__(self):
        self._entries: dict[Key, _Entry] = {}
        self._discounts: dict[Key, float] = {}
        self._bill_discount = 0.0

    # ---------------------------- helpers ----------------------------

    @staticmethod
    def key_for(name: str, product_id: int | None = None) -> Key:
        return product_id if product_id is not None else name.strip()

    def _entry(self, key: Key) -> _Entry:
        try:
            return self._entries[key]
        except KeyError:
            raise ValidationError(f"Item not in cart: {key}") from None

    @staticmethod
    def _qty(qty) -> int:
        if not is_whole_number(qty):
            raise ValidationError("Quantity must be a whole number.")
        return int(float(qty))

    def _check_stock(self, key: Key, e: _Entry, qty: int) -> None:
        """`qty` for this line plus every other line of the same product must fit in stock."""
        if e.available is None:
            return
        total = qty
        if e.product_id is not None:
            total += sum(
                o.quantity for k, o in self._entries.items()
                if k != key and o.product_id == e.product_id
            )
        if total > e.available:
            raise InsufficientStock(e.name, e.available, total)

    def _insert(self, key: Key, name: str, base_price, quantity, product_id, available) -> None:
        ok, price = try_parse_float(base_price)
        if not ok or price < 0:
            raise ValidationError("Rate must be a number >= 0.")
        qty = self._qty(quantity)
        if qty <= 0:
            raise ValidationError("Quantity must be greater than 0.")
        e = _Entry(name=name.strip(), base_price=price, quantity=qty,
                   product_id=product_id, available=available)
        self._check_stock(key, e, qty)
        self._entries[key] = e

    # ---------------------------- container ----------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __contains__(self, key: Key) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines())

    def keys(self) -> list[Key]:
        return list(self._entries)

    # ---------------------------- editing ----------------------------

    def add(
        self,
        name: str,
        base_price: float,
        quantity: int = 1,
        *,
        product_id: int | None = None,
        available: int | None = None,
    ) -> Key:
        """
        Add `quantity` of an item; an item already in the cart has its
        quantity increased. `available` (stock on hand) guards overselling.
        """
        key = self.key_for(name, product_id)
        if key in self._entries:
            ok, price = try_parse_float(base_price)
            if not ok or price < 0:
                raise ValidationError("Rate must be a number >= 0.")
            qty = self._qty(quantity)
            e = self._entries[key]
            if available is not None:
                for o in self._entries.values():
                    if o is e or (product_id is not None and o.product_id == product_id):
                        o.available = available
            self.set_quantity(key, e.quantity + qty)
            return key
        self._insert(key, name, base_price, quantity, product_id, available)
        return key

    def add_product(self, product: Product, quantity: int = 1, rate: float | None = None) -> Key:
        """Add a catalogue product at its sell price (or a manual rate)."""
        return self.add(
            product.name,
            product.sell_price if rate is None else rate,
            quantity,
            product_id=product.product_id,
            available=product.stock,
        )

    def set_quantity(self, key: Key, qty) -> None:
        """A quantity of 0 or less drops the line and its discount."""
        e = self._entry(key)
        qty = self._qty(qty)
        if qty <= 0:
            self.remove(key)
            return
        self._check_stock(key, e, qty)
        e.quantity = qty

    def set_rate(self, key: Key, rate) -> None:
        """Override the base price for this line (e.g. negotiated rate)."""
        ok, price = try_parse_float(rate)
        if not ok or price < 0:
            raise ValidationError("Rate must be a number >= 0.")
        self._entry(key).base_price = price

    def set_item_discount(self, key: Key, percent) -> None:
        self._entry(key)
        pct = validate_percent(percent, "Item discount")
        if pct > 0:
            self._discounts[key] = pct
        else:
            self._discounts.pop(key, None)

    def item_discount(self, key: Key) -> float:
        return self._discounts.get(key, 0.0)

    def apply_discount_to_all(self, percent) -> None:
        """Copy one item-discount percentage onto every line."""
        pct = validate_percent(percent, "Discount")
        if pct <= 0:
            raise ValidationError("Enter a discount percentage first.")
        for key in self._entries:
            self._discounts[key] = pct

    def remove(self, key: Key) -> None:
        self._entries.pop(key, None)
        self._discounts.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self._discounts.clear()
        self._bill_discount = 0.0

    @property
    def bill_discount_percent(self) -> float:
        return self._bill_discount

    @bill_discount_percent.setter
    def bill_discount_percent(self, value) -> None:
        self._bill_discount = validate_percent(value, "Bill discount")

    # ---------------------------- output ----------------------------

    def lines(self) -> list[CartLine]:
        return [
            CartLine(
                name=e.name,
                base_price=e.base_price,
                quantity=e.quantity,
                discount_percent=self._discounts.get(key, 0.0),
                product_id=e.product_id,
            )
            for key, e in self._entries.items()
        ]

    def totals(self) -> BillTotals:
        return compute_totals(self.lines(), self._bill_discount)

    @classmethod
    def from_bill(cls, bill: Bill, stock_by_product: Optional[dict[int, int]] = None) -> "Cart":
        """
        Rebuild a cart from a saved bill for editing. `stock_by_product`
        is current stock on hand; the bill's own quantities are added back
        since they were already taken out of stock.
        """
        cart = cls()
        stock_by_product = stock_by_product or {}
        held: dict[int, int] = {}
        for it in bill.items:
            if it.product_id is not None:
                held[it.product_id] = held.get(it.product_id, 0) + it.quantity
        for it in bill.items:
            available = None
            if it.product_id is not None and it.product_id in stock_by_product:
                available = stock_by_product[it.product_id] + held[it.product_id]
            key = cls.key_for(it.item_name, it.product_id)
            if key in cart:
                # same product saved on several lines: never merge, rates may differ
                key = (key, it.item_id)
            cart._insert(key, it.item_name, it.rate, it.quantity, it.product_id, available)
            if it.discount_percent:
                cart.set_item_discount(key, it.discount_percent)
        cart.bill_discount_percent = bill.bill_discount_percent
        return cart
