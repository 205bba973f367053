# database/repositories/__init__.py
"""
Repository layer public API.

Every repo takes the shared Store (see database.store) rather than a raw
connection, so all of them write through the same transaction.

Usage:
    from wholesale_pos.database import Store
    from wholesale_pos.database.repositories import (
        # Errors
        DomainError, ValidationError, InvariantViolation, InsufficientStock,
        NotFound, StorageFailure,
        # Products / stock
        ProductsRepo, Product,
        # Customers / ledger
        CustomersRepo, Customer,
        # Suppliers & contacts
        SuppliersRepo, Supplier, ContactsRepo,
        # Bills
        BillsRepo, Bill, BillItem,
    )

    store = Store()            # once, at startup
    bills = BillsRepo(store)
"""

# ----------------- Errors ------------------
from ...errors import (
    DomainError,
    ValidationError,
    InvariantViolation,
    InsufficientStock,
    NotFound,
    StorageFailure,
)

# ---------------- Products -----------------
from .products_repo import ProductsRepo, Product

# ---------------- Customers ----------------
from .customers_repo import CustomersRepo, Customer

# ---------------- Suppliers ----------------
from .suppliers_repo import SuppliersRepo, Supplier
from .contacts_repo import ContactsRepo

# ------------------ Bills ------------------
from .bills_repo import BillsRepo, Bill, BillItem

__all__ = [
    # errors
    "DomainError",
    "ValidationError",
    "InvariantViolation",
    "InsufficientStock",
    "NotFound",
    "StorageFailure",
    # products_repo
    "ProductsRepo",
    "Product",
    # customers_repo
    "CustomersRepo",
    "Customer",
    # suppliers / contacts
    "SuppliersRepo",
    "Supplier",
    "ContactsRepo",
    # bills_repo
    "BillsRepo",
    "Bill",
    "BillItem",
]
