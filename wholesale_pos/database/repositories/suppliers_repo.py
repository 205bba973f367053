from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...errors import ValidationError, NotFound

if TYPE_CHECKING:
    from ..store import Store

_COLUMNS = "id AS supplier_id, name, phone, email, address, company, products"


@dataclass
class Supplier:
    supplier_id: int | None
    name: str
    phone: str
    email: str | None
    address: str | None
    company: str
    products: str | None


class SuppliersRepo:
    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def _check(name: str, phone: str, company: str) -> None:
        for label, value in (("Name", name), ("Phone", phone), ("Company", company)):
            if value is None or str(value).strip() == "":
                raise ValidationError(f"{label} cannot be empty.")

    def list_suppliers(self) -> list[Supplier]:
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM suppliers ORDER BY name", what="suppliers"
        )
        return [Supplier(**dict(r)) for r in rows]

    def search_by_name(self, fragment: str) -> list[Supplier]:
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM suppliers WHERE name LIKE ? ORDER BY name",
            (f"%{(fragment or '').strip()}%",),
            what="suppliers",
        )
        return [Supplier(**dict(r)) for r in rows]

    def get(self, supplier_id: int) -> Supplier | None:
        r = self.store.conn.execute(
            f"SELECT {_COLUMNS} FROM suppliers WHERE id=?", (supplier_id,)
        ).fetchone()
        return Supplier(**dict(r)) if r else None

    def create_supplier(
        self,
        name: str,
        phone: str,
        company: str,
        products: str | None = None,
        email: str | None = None,
        address: str | None = None,
    ) -> int:
        self._check(name, phone, company)
        with self.store.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO suppliers(name, phone, email, address, company, products) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (name.strip(), phone.strip(), email or None, address or None, company.strip(), products),
            )
            return int(cur.lastrowid)

    def update_supplier(
        self,
        supplier_id: int,
        name: str,
        phone: str,
        company: str,
        products: str | None = None,
        email: str | None = None,
        address: str | None = None,
    ) -> None:
        self._check(name, phone, company)
        with self.store.transaction() as conn:
            cur = conn.execute(
                "UPDATE suppliers SET name=?, phone=?, email=?, address=?, company=?, products=? "
                "WHERE id=?",
                (name.strip(), phone.strip(), email or None, address or None, company.strip(), products, supplier_id),
            )
            if cur.rowcount == 0:
                raise NotFound("Supplier", supplier_id)

    def delete_supplier(self, supplier_id: int) -> None:
        with self.store.transaction() as conn:
            conn.execute("DELETE FROM suppliers WHERE id=?", (supplier_id,))
