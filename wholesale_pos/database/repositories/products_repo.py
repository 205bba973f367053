# wholesale_pos/database/repositories/products_repo.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

from ...constants import DEFAULT_MIN_STOCK
from ...utils.helpers import now_iso
from ...utils.validators import non_empty, is_non_negative_number, is_whole_number
from ...errors import ValidationError, InvariantViolation, NotFound

if TYPE_CHECKING:
    from ..store import Store

_log = logging.getLogger(__name__)

# Aliases map the camelCase columns onto the dataclass fields.
_COLUMNS = (
    "id AS product_id, name, mrp, sellPrice AS sell_price, "
    "purchasePrice AS purchase_price, stock, unit, category, "
    "minStock AS min_stock, createdAt AS created_at, updatedAt AS updated_at"
)


@dataclass
class Product:
    product_id: int | None
    name: str
    mrp: float
    sell_price: float
    purchase_price: float
    stock: int
    unit: str
    category: str
    min_stock: int
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_low(self) -> bool:
        return self.stock <= self.min_stock


class ProductsRepo:
    def __init__(self, store: Store):
        self.store = store

    # ---------------------------- validation ----------------------------

    @staticmethod
    def _validate(
        name: str,
        mrp: float,
        sell_price: float,
        purchase_price: float,
        stock: int,
        min_stock: int,
    ) -> None:
        if not non_empty(name):
            raise ValidationError("Product name cannot be empty.")
        for label, value in (
            ("MRP", mrp),
            ("Sell price", sell_price),
            ("Purchase price", purchase_price),
        ):
            if not is_non_negative_number(value):
                raise ValidationError(f"{label} must be a number >= 0.")
        if not (is_whole_number(stock) and float(stock) >= 0):
            raise ValidationError("Stock must be a whole number >= 0.")
        if not (is_whole_number(min_stock) and float(min_stock) >= 0):
            raise ValidationError("Minimum stock must be a whole number >= 0.")

    # ---------------------------- queries ----------------------------

    def list_products(self) -> list[Product]:
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM products ORDER BY name", what="products"
        )
        return [Product(**r) for r in rows]

    def get(self, product_id: int) -> Product | None:
        r = self.store.conn.execute(
            f"SELECT {_COLUMNS} FROM products WHERE id=?", (product_id,)
        ).fetchone()
        return Product(**r) if r else None

    def require(self, product_id: int) -> Product:
        p = self.get(product_id)
        if p is None:
            raise NotFound("Product", product_id)
        return p

    def find_by_name(self, name: str) -> Product | None:
        """Exact-name lookup (lowest id wins) for bill lines that carry only a name snapshot."""
        r = self.store.conn.execute(
            f"SELECT {_COLUMNS} FROM products WHERE name=? ORDER BY id LIMIT 1", (name,)
        ).fetchone()
        return Product(**r) if r else None

    def search_by_name(self, fragment: str) -> list[Product]:
        pattern = f"%{(fragment or '').strip()}%"
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM products WHERE name LIKE ? ORDER BY name",
            (pattern,),
            what="products",
        )
        return [Product(**r) for r in rows]

    def list_by_category(self, category: str) -> list[Product]:
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM products WHERE category=? ORDER BY name",
            (category,),
            what="products",
        )
        return [Product(**r) for r in rows]

    def list_low_stock(self) -> list[Product]:
        """Reorder alerts: stock at or below minStock, emptiest first."""
        rows = self.store.fetch_all(
            f"SELECT {_COLUMNS} FROM products WHERE stock <= minStock ORDER BY stock ASC, name",
            what="low-stock products",
        )
        return [Product(**r) for r in rows]

    # ---------------------------- mutations ----------------------------

    def create_product(
        self,
        name: str,
        mrp: float,
        sell_price: float,
        purchase_price: float,
        stock: int,
        unit: str,
        category: str,
        min_stock: int = DEFAULT_MIN_STOCK,
    ) -> int:
        self._validate(name, mrp, sell_price, purchase_price, stock, min_stock)
        with self.store.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO products(name, mrp, sellPrice, purchasePrice, stock, unit, category, minStock) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    name.strip(),
                    float(mrp),
                    float(sell_price),
                    float(purchase_price),
                    int(float(stock)),
                    (unit or "").strip(),
                    (category or "").strip(),
                    int(float(min_stock)),
                ),
            )
            return int(cur.lastrowid)

    def update_product(
        self,
        product_id: int,
        name: str,
        mrp: float,
        sell_price: float,
        purchase_price: float,
        stock: int,
        unit: str,
        category: str,
        min_stock: int = DEFAULT_MIN_STOCK,
    ) -> None:
        """Full overwrite of the mutable fields."""
        self._validate(name, mrp, sell_price, purchase_price, stock, min_stock)
        with self.store.transaction() as conn:
            cur = conn.execute(
                "UPDATE products "
                "SET name=?, mrp=?, sellPrice=?, purchasePrice=?, stock=?, unit=?, "
                "    category=?, minStock=?, updatedAt=? "
                "WHERE id=?",
                (
                    name.strip(),
                    float(mrp),
                    float(sell_price),
                    float(purchase_price),
                    int(float(stock)),
                    (unit or "").strip(),
                    (category or "").strip(),
                    int(float(min_stock)),
                    now_iso(),
                    product_id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFound("Product", product_id)

    def delete_product(self, product_id: int) -> None:
        """
        Hard delete. Bill lines keep their itemName snapshot; their productId
        link is nulled by the foreign key.
        """
        with self.store.transaction() as conn:
            conn.execute("DELETE FROM products WHERE id=?", (product_id,))

    def adjust_stock(self, product_id: int, new_stock: int) -> None:
        """
        Set stock to an absolute value. Callers compute new_stock from
        current stock +/- delta.
        """
        if not is_whole_number(new_stock):
            raise ValidationError("Stock must be a whole number.")
        new_stock = int(float(new_stock))
        if new_stock < 0:
            raise InvariantViolation(
                f"Stock cannot go negative (product {product_id}, requested {new_stock})."
            )
        with self.store.transaction() as conn:
            cur = conn.execute(
                "UPDATE products SET stock=?, updatedAt=? WHERE id=?",
                (new_stock, now_iso(), product_id),
            )
            if cur.rowcount == 0:
                raise NotFound("Product", product_id)
        _log.debug("Stock for product %s set to %s", product_id, new_stock)
