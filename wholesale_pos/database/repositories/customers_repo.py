from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

from ...utils.helpers import today_str, round2
from ...utils.validators import try_parse_float
from ...errors import ValidationError, InvariantViolation, NotFound

if TYPE_CHECKING:
    from ..store import Store

_log = logging.getLogger(__name__)

_COLUMNS = (
    "id AS customer_id, name, phone, email, address, "
    "totalPurchases AS total_purchases, lastPurchase AS last_purchase"
)


@dataclass
class Customer:
    customer_id: int | None
    name: str
    phone: str
    email: str | None
    address: str | None
    total_purchases: float = 0.0
    last_purchase: str | None = None


class CustomersRepo:
    def __init__(self, store: Store):
        self.store = store

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: str | None) -> str | None:
        if s is None:
            return None
        s = s.strip()
        return s or None

    @staticmethod
    def _ensure_non_empty(value: str | None, field_label: str) -> None:
        if value is None or value.strip() == "":
            raise ValidationError(f"{field_label} cannot be empty.")

    @staticmethod
    def _amount(amount) -> float:
        ok, val = try_parse_float(amount)
        if not ok or val < 0:
            raise ValidationError("Purchase amount must be a number >= 0.")
        return val

    def _current_total(self, conn, customer_id: int) -> float:
        row = conn.execute(
            "SELECT totalPurchases FROM customers WHERE id=?", (customer_id,)
        ).fetchone()
        if row is None:
            raise NotFound("Customer", customer_id)
        return float(row["totalPurchases"] or 0.0)

    # ---- Queries ----------------------------------------------------------

    def list_customers(self) -> list[Customer]:
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM customers ORDER BY name", what="customers"
        )
        return [Customer(**r) for r in rows]

    def search_by_name(self, fragment: str) -> list[Customer]:
        """
        Case-insensitive substring match on name, ordered by name.
        SQLite LIKE is case-insensitive for ASCII.
        """
        if fragment is None or fragment.strip() == "":
            raise ValidationError("Search text cannot be empty.")
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM customers WHERE name LIKE ? ORDER BY name",
            (f"%{fragment.strip()}%",),
            what="customers",
        )
        return [Customer(**r) for r in rows]

    def get(self, customer_id: int) -> Customer | None:
        r = self.store.conn.execute(
            f"SELECT {_COLUMNS} FROM customers WHERE id=?", (customer_id,)
        ).fetchone()
        return Customer(**r) if r else None

    # ---- Mutations --------------------------------------------------------

    def create_customer(
        self,
        name: str,
        phone: str,
        email: str | None = None,
        address: str | None = None,
    ) -> int:
        self._ensure_non_empty(name, "Name")
        self._ensure_non_empty(phone, "Phone")
        with self.store.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO customers(name, phone, email, address, totalPurchases) "
                "VALUES (?, ?, ?, ?, 0)",
                (
                    self._normalize_text(name),
                    self._normalize_text(phone),
                    self._normalize_text(email),
                    self._normalize_text(address),
                ),
            )
            return int(cur.lastrowid)

    def update_customer(
        self,
        customer_id: int,
        name: str,
        phone: str,
        email: str | None = None,
        address: str | None = None,
    ) -> None:
        """
        Update contact fields. Bills keep the customerName they were created
        with; renaming here does not touch them.
        """
        self._ensure_non_empty(name, "Name")
        self._ensure_non_empty(phone, "Phone")
        with self.store.transaction() as conn:
            cur = conn.execute(
                "UPDATE customers SET name=?, phone=?, email=?, address=? WHERE id=?",
                (
                    self._normalize_text(name),
                    self._normalize_text(phone),
                    self._normalize_text(email),
                    self._normalize_text(address),
                    customer_id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFound("Customer", customer_id)

    def delete_customer(self, customer_id: int) -> None:
        with self.store.transaction() as conn:
            if conn.execute(
                "SELECT 1 FROM bills WHERE customerId=? LIMIT 1", (customer_id,)
            ).fetchone():
                raise InvariantViolation(
                    "Cannot delete customer: bills still reference them. "
                    "Delete those bills first."
                )
            conn.execute("DELETE FROM customers WHERE id=?", (customer_id,))

    # ---- Ledger -----------------------------------------------------------

    def record_purchase(self, customer_id: int, amount: float) -> None:
        """totalPurchases += amount and lastPurchase = today."""
        amount = self._amount(amount)
        with self.store.transaction() as conn:
            total = self._current_total(conn, customer_id)
            conn.execute(
                "UPDATE customers SET totalPurchases=?, lastPurchase=? WHERE id=?",
                (round2(total + amount), today_str(), customer_id),
            )

    def reverse_purchase(self, customer_id: int, amount: float) -> None:
        """
        totalPurchases -= amount, floored at 0. lastPurchase is left as is.
        """
        amount = self._amount(amount)
        with self.store.transaction() as conn:
            total = self._current_total(conn, customer_id)
            new_total = round2(total - amount)
            if new_total < 0:
                _log.warning(
                    "Reversal of %.2f for customer %s exceeds recorded total %.2f; flooring at 0",
                    amount, customer_id, total,
                )
                new_total = 0.0
            conn.execute(
                "UPDATE customers SET totalPurchases=? WHERE id=?",
                (new_total, customer_id),
            )

    def adjust_total(self, customer_id: int, delta: float) -> None:
        """
        Shift totalPurchases by a signed delta (bill edits). Floored at 0;
        lastPurchase is left as is.
        """
        ok, delta = try_parse_float(delta)
        if not ok:
            raise ValidationError("Adjustment must be a number.")
        if delta > 0:
            with self.store.transaction() as conn:
                total = self._current_total(conn, customer_id)
                conn.execute(
                    "UPDATE customers SET totalPurchases=? WHERE id=?",
                    (round2(total + delta), customer_id),
                )
        elif delta < 0:
            self.reverse_purchase(customer_id, -delta)
