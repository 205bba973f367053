from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterable
import logging
import sqlite3

from ...constants import BILL_TYPES
from ...modules.billing.pricing import BillTotals, CartLine, PricedLine, compute_totals
from ...utils.helpers import round2, today_str
from ...utils.validators import non_empty
from ...errors import InsufficientStock, NotFound, ValidationError
from .customers_repo import CustomersRepo
from .products_repo import ProductsRepo

if TYPE_CHECKING:
    from ..store import Store

_log = logging.getLogger(__name__)

_BILL_COLUMNS = (
    "id AS bill_id, customerId AS customer_id, customerName AS customer_name, "
    "billType AS bill_type, billingDate AS billing_date, totalAmount AS total_amount, "
    "billDiscountPercent AS bill_discount_percent, billDiscountAmount AS bill_discount_amount, "
    "subtotal, itemDiscountAmount AS item_discount_amount"
)
_ITEM_COLUMNS = (
    "id AS item_id, billId AS bill_id, productId AS product_id, itemName AS item_name, "
    "quantity, rate, finalRate AS final_rate, discountPercent AS discount_percent, "
    "discountAmount AS discount_amount, total"
)


@dataclass
class BillItem:
    item_id: int | None
    bill_id: int | None
    product_id: int | None
    item_name: str
    quantity: int
    rate: float
    final_rate: float
    discount_percent: float
    discount_amount: float
    total: float


@dataclass
class Bill:
    bill_id: int | None
    customer_id: int
    customer_name: str
    bill_type: str
    billing_date: str
    total_amount: float
    bill_discount_percent: float
    bill_discount_amount: float
    subtotal: float
    item_discount_amount: float
    items: list[BillItem] = field(default_factory=list)


class BillsRepo:
    """
    Bills + bill items, and the stock / customer-ledger side effects they
    carry.

    Key behavior:
      - commit/update/delete each run in ONE store transaction: bill row,
        item rows, stock moves and the customer ledger either all land or
        none do.
      - Totals are always recomputed here from the cart lines via the
        pricing engine; callers never pass totals in.
      - customerName and itemName are snapshots taken when the bill is
        written and are not re-synced with later renames.
      - Item rows are replaced wholesale (delete + insert) on update.
    """

    def __init__(self, store: Store):
        self.store = store
        self.products = ProductsRepo(store)
        self.customers = CustomersRepo(store)

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    @staticmethod
    def _bill(row) -> Bill:
        d = dict(row)
        for k in ("bill_discount_percent", "bill_discount_amount", "subtotal", "item_discount_amount"):
            d[k] = float(d[k] or 0.0)
        return Bill(**d)

    @staticmethod
    def _item(row) -> BillItem:
        d = dict(row)
        d["discount_percent"] = float(d["discount_percent"] or 0.0)
        d["discount_amount"] = float(d["discount_amount"] or 0.0)
        return BillItem(**d)

    def list_bills(self) -> list[Bill]:
        rows = self.store.fetch_all(
            f"SELECT {_BILL_COLUMNS} FROM bills ORDER BY id DESC", what="bills"
        )
        return [self._bill(r) for r in rows]

    def list_bills_for_customer(self, customer_id: int) -> list[Bill]:
        rows = self.store.fetch_all(
            f"SELECT {_BILL_COLUMNS} FROM bills WHERE customerId=? "
            "ORDER BY billingDate DESC, id DESC",
            (customer_id,),
            what="customer bills",
        )
        return [self._bill(r) for r in rows]

    def list_items(self, bill_id: int) -> list[BillItem]:
        rows = self.store.fetch_all(
            f"SELECT {_ITEM_COLUMNS} FROM bill_items WHERE billId=? ORDER BY id",
            (bill_id,),
            what="bill items",
        )
        return [self._item(r) for r in rows]

    def _load(self, conn: sqlite3.Connection, bill_id: int) -> Bill | None:
        row = conn.execute(
            f"SELECT {_BILL_COLUMNS} FROM bills WHERE id=?", (bill_id,)
        ).fetchone()
        if row is None:
            return None
        bill = self._bill(row)
        bill.items = [
            self._item(r)
            for r in conn.execute(
                f"SELECT {_ITEM_COLUMNS} FROM bill_items WHERE billId=? ORDER BY id",
                (bill_id,),
            ).fetchall()
        ]
        return bill

    def get_bill_with_items(self, bill_id: int) -> Bill | None:
        return self._load(self.store.conn, bill_id)

    def last_purchase_amount(self, customer_id: int) -> float | None:
        """Total of the customer's most recent bill (by billingDate, then id)."""
        row = self.store.conn.execute(
            "SELECT totalAmount FROM bills WHERE customerId=? "
            "ORDER BY billingDate DESC, id DESC LIMIT 1",
            (customer_id,),
        ).fetchone()
        return float(row["totalAmount"]) if row else None

    # ---------------------------------------------------------------------
    # VALIDATION (no I/O)
    # ---------------------------------------------------------------------
    @staticmethod
    def _prepare(
        customer_name: str,
        bill_type: str,
        billing_date: str | None,
        cart_items: Iterable[CartLine],
        bill_discount_percent,
    ) -> tuple[str, BillTotals]:
        if not non_empty(customer_name):
            raise ValidationError("Customer name cannot be empty.")
        if bill_type not in BILL_TYPES:
            raise ValidationError(f"Bill type must be one of {', '.join(BILL_TYPES)}.")
        lines = list(cart_items or [])
        if not lines:
            raise ValidationError("Cart is empty. Add at least one item.")
        totals = compute_totals(lines, bill_discount_percent)
        return (billing_date or today_str()), totals

    # ---------------------------------------------------------------------
    # INTERNAL WRITES
    # ---------------------------------------------------------------------
    def _resolve_products(self, lines: Iterable[PricedLine | BillItem]) -> list:
        """
        Fill in product ids for lines that only carry a name (ad-hoc cart
        items, rows saved before bill_items.productId existed). Lines naming
        no known product stay unlinked and move no stock.

        A saved row resolved by name may point at a product created after
        the original was deleted, so those matches are logged as warnings.
        """
        out = []
        for ln in lines:
            if ln.product_id is None:
                saved = isinstance(ln, BillItem)
                name = ln.item_name if saved else ln.name
                p = self.products.find_by_name(name)
                if p is not None:
                    if saved:
                        _log.warning(
                            "Bill %s line %r has no product link; matched product %s by name",
                            ln.bill_id, name, p.product_id,
                        )
                    ln = replace(ln, product_id=p.product_id)
            out.append(ln)
        return out

    @staticmethod
    def _quantities(lines) -> dict[int, int]:
        out: dict[int, int] = {}
        for ln in lines:
            if ln.product_id is not None:
                out[ln.product_id] = out.get(ln.product_id, 0) + int(ln.quantity)
        return out

    def _apply_stock(self, conn: sqlite3.Connection, deltas: dict[int, int]) -> None:
        """
        deltas: product_id -> signed change (negative consumes stock).
        Raises InsufficientStock before anything is written if any product
        would go negative.
        """
        planned: list[tuple[int, int]] = []
        for pid in sorted(deltas):
            delta = deltas[pid]
            if delta == 0:
                continue
            row = conn.execute("SELECT name, stock FROM products WHERE id=?", (pid,)).fetchone()
            if row is None:
                raise NotFound("Product", pid)
            new_stock = int(row["stock"]) + delta
            if new_stock < 0:
                raise InsufficientStock(row["name"], int(row["stock"]), -delta)
            planned.append((pid, new_stock))
        for pid, new_stock in planned:
            self.products.adjust_stock(pid, new_stock)

    def _insert_header(self, conn, customer_id: int, customer_name: str, bill_type: str,
                       billing_date: str, t: BillTotals) -> int:
        cur = conn.execute(
            """
            INSERT INTO bills (
                customerId, customerName, billType, billingDate, totalAmount,
                billDiscountPercent, billDiscountAmount, subtotal, itemDiscountAmount
            )
            VALUES (?,?,?,?,?,?,?,?,?)
            """,
            (
                customer_id,
                customer_name.strip(),
                bill_type,
                billing_date,
                t.total_amount,
                t.bill_discount_percent,
                t.bill_discount_amount,
                t.subtotal,
                t.item_discount_amount,
            ),
        )
        return int(cur.lastrowid)

    def _insert_items(self, conn, bill_id: int, lines: Iterable[PricedLine]) -> None:
        conn.executemany(
            """
            INSERT INTO bill_items (
                billId, productId, itemName, quantity, rate, finalRate,
                discountPercent, discountAmount, total
            ) VALUES (?,?,?,?,?,?,?,?,?)
            """,
            [
                (
                    bill_id,
                    ln.product_id,
                    ln.name,
                    ln.quantity,
                    ln.rate,
                    ln.final_rate,
                    ln.discount_percent,
                    ln.discount_amount,
                    ln.total,
                )
                for ln in lines
            ],
        )

    def _require_customer(self, conn, customer_id: int) -> None:
        if not conn.execute("SELECT 1 FROM customers WHERE id=?", (customer_id,)).fetchone():
            raise NotFound("Customer", customer_id)

    # ---------------------------------------------------------------------
    # WRITE: BILLS
    # ---------------------------------------------------------------------
    def commit_bill(
        self,
        customer_id: int | None,
        customer_name: str,
        bill_type: str,
        billing_date: str | None,
        cart_items: Iterable[CartLine],
        bill_discount_percent=0.0,
        *,
        customer_phone: str | None = None,
    ) -> int:
        """
        Save a new bill and take its quantities out of stock.

        customer_id=None with a customer_phone creates the customer inside
        the same transaction (walk-in / new customer flow).
        """
        billing_date, totals = self._prepare(
            customer_name, bill_type, billing_date, cart_items, bill_discount_percent
        )
        if customer_id is None and not non_empty(customer_phone):
            raise ValidationError("Phone is required to add a new customer.")

        with self.store.transaction() as conn:
            if customer_id is None:
                customer_id = self.customers.create_customer(customer_name, customer_phone)
            else:
                self._require_customer(conn, customer_id)

            lines = self._resolve_products(totals.lines)
            # stock first: a line naming a deleted product must fail as NotFound, not on the FK
            self._apply_stock(conn, {pid: -q for pid, q in self._quantities(lines).items()})
            bill_id = self._insert_header(conn, customer_id, customer_name, bill_type, billing_date, totals)
            self._insert_items(conn, bill_id, lines)
            self.customers.record_purchase(customer_id, totals.total_amount)

        _log.info(
            "Bill %s saved for customer %s (%s): %d line(s), total %.2f",
            bill_id, customer_id, bill_type, len(totals.lines), totals.total_amount,
        )
        return bill_id

    def update_bill(
        self,
        bill_id: int,
        customer_id: int,
        customer_name: str,
        bill_type: str,
        billing_date: str | None,
        cart_items: Iterable[CartLine],
        bill_discount_percent=0.0,
    ) -> None:
        """
        Rewrite a bill. Stock moves by (old qty - new qty) per product;
        products dropped from the bill get their full quantity back. The
        customer ledger is moved by (new total - old total), or from the old
        customer to the new one when the bill changes hands.
        """
        billing_date, totals = self._prepare(
            customer_name, bill_type, billing_date, cart_items, bill_discount_percent
        )

        with self.store.transaction() as conn:
            old = self._load(conn, bill_id)
            if old is None:
                raise NotFound("Bill", bill_id)
            if customer_id != old.customer_id:
                self._require_customer(conn, customer_id)

            lines = self._resolve_products(totals.lines)
            old_qty = self._quantities(self._resolve_products(old.items))
            new_qty = self._quantities(lines)
            self._apply_stock(
                conn,
                {pid: old_qty.get(pid, 0) - new_qty.get(pid, 0) for pid in set(old_qty) | set(new_qty)},
            )

            conn.execute(
                """
                UPDATE bills
                   SET customerId=?,
                       customerName=?,
                       billType=?,
                       billingDate=?,
                       totalAmount=?,
                       billDiscountPercent=?,
                       billDiscountAmount=?,
                       subtotal=?,
                       itemDiscountAmount=?
                 WHERE id=?
                """,
                (
                    customer_id,
                    customer_name.strip(),
                    bill_type,
                    billing_date,
                    totals.total_amount,
                    totals.bill_discount_percent,
                    totals.bill_discount_amount,
                    totals.subtotal,
                    totals.item_discount_amount,
                    bill_id,
                ),
            )
            conn.execute("DELETE FROM bill_items WHERE billId=?", (bill_id,))
            self._insert_items(conn, bill_id, lines)

            if customer_id == old.customer_id:
                self.customers.adjust_total(customer_id, round2(totals.total_amount - old.total_amount))
            else:
                self.customers.reverse_purchase(old.customer_id, old.total_amount)
                self.customers.record_purchase(customer_id, totals.total_amount)

        _log.info(
            "Bill %s updated: total %.2f -> %.2f", bill_id, old.total_amount, totals.total_amount
        )

    def delete_bill(self, bill_id: int) -> None:
        """Delete a bill, put its quantities back in stock and reverse the customer ledger."""
        with self.store.transaction() as conn:
            old = self._load(conn, bill_id)
            if old is None:
                raise NotFound("Bill", bill_id)
            self._apply_stock(conn, self._quantities(self._resolve_products(old.items)))
            self.customers.reverse_purchase(old.customer_id, old.total_amount)
            conn.execute("DELETE FROM bill_items WHERE billId=?", (bill_id,))
            conn.execute("DELETE FROM bills WHERE id=?", (bill_id,))

        _log.info("Bill %s deleted (total %.2f)", bill_id, old.total_amount)
