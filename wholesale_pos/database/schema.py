from pathlib import Path
import logging
import sqlite3
import sys

from .versioning import set_current_version

_log = logging.getLogger(__name__)

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CONTACTS ======================== */

CREATE TABLE IF NOT EXISTS customers (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    name           TEXT NOT NULL,
    phone          TEXT NOT NULL,
    email          TEXT,
    address        TEXT,
    totalPurchases REAL NOT NULL DEFAULT 0 CHECK (totalPurchases >= 0),
    lastPurchase   TEXT
);
CREATE INDEX IF NOT EXISTS idx_customers_name ON customers(name);

CREATE TABLE IF NOT EXISTS suppliers (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    name     TEXT NOT NULL,
    phone    TEXT NOT NULL,
    email    TEXT,
    address  TEXT,
    company  TEXT NOT NULL,
    products TEXT
);

/* ======================== PRODUCTS ======================== */

CREATE TABLE IF NOT EXISTS products (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    name          TEXT NOT NULL,
    mrp           REAL NOT NULL CHECK (mrp >= 0),
    sellPrice     REAL NOT NULL CHECK (sellPrice >= 0),
    purchasePrice REAL NOT NULL CHECK (purchasePrice >= 0),
    stock         INTEGER NOT NULL CHECK (stock >= 0),
    unit          TEXT NOT NULL,
    category      TEXT NOT NULL,
    minStock      INTEGER NOT NULL DEFAULT 0 CHECK (minStock >= 0),
    createdAt     TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt     TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_products_name ON products(name);

/* ======================== BILLS ======================== */

CREATE TABLE IF NOT EXISTS bills (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    customerId          INTEGER NOT NULL,
    customerName        TEXT NOT NULL,
    billType            TEXT NOT NULL CHECK (billType IN ('Cash','Credit')),
    billingDate         TEXT NOT NULL,
    totalAmount         REAL NOT NULL CHECK (totalAmount >= 0),
    billDiscountPercent REAL NOT NULL DEFAULT 0 CHECK (billDiscountPercent BETWEEN 0 AND 100),
    billDiscountAmount  REAL NOT NULL DEFAULT 0,
    subtotal            REAL NOT NULL DEFAULT 0,
    itemDiscountAmount  REAL NOT NULL DEFAULT 0,
    FOREIGN KEY (customerId) REFERENCES customers(id)
);
CREATE INDEX IF NOT EXISTS idx_bills_customer ON bills(customerId, billingDate);

/* itemName is a snapshot: history stays legible after a product is renamed or deleted */
CREATE TABLE IF NOT EXISTS bill_items (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    billId          INTEGER NOT NULL,
    productId       INTEGER,
    itemName        TEXT NOT NULL,
    quantity        INTEGER NOT NULL CHECK (quantity > 0),
    rate            REAL NOT NULL CHECK (rate >= 0),
    finalRate       REAL NOT NULL CHECK (finalRate >= 0),
    discountPercent REAL NOT NULL DEFAULT 0 CHECK (discountPercent BETWEEN 0 AND 100),
    discountAmount  REAL NOT NULL DEFAULT 0,
    total           REAL NOT NULL,
    FOREIGN KEY (billId)    REFERENCES bills(id) ON DELETE CASCADE,
    FOREIGN KEY (productId) REFERENCES products(id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS idx_bill_items_bill ON bill_items(billId);
"""


def _ensure_bill_items_product_id(conn: sqlite3.Connection) -> None:
    """
    Safe migration for databases created before bill_items.productId existed.
    Adds the column if missing. No-op if already present.
    """
    cur = conn.execute("PRAGMA table_info(bill_items);")
    cols = {row[1] for row in cur.fetchall()}  # row[1] = name
    if "productId" not in cols:
        conn.execute(
            "ALTER TABLE bill_items "
            "ADD COLUMN productId INTEGER REFERENCES products(id) ON DELETE SET NULL;"
        )


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply the (idempotent) schema and migrations on an open connection."""
    conn.executescript(SQL)
    _ensure_bill_items_product_id(conn)
    set_current_version(conn)


def init_schema(db_path: Path | str = "wholesale.db") -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        apply_schema(conn)
        conn.commit()
    finally:
        conn.close()
    _log.info("Schema applied to %s", db_path)


if __name__ == "__main__":
    from ..config import DB_PATH
    from ..utils.loggers import get_logger

    get_logger()

    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    init_schema(target)
