"""
Merged customer + supplier listing for the contacts screen.

Each entry is a (kind, record) pair where kind is "customer" or "supplier",
sorted case-insensitively by name.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Union

from .customers_repo import CustomersRepo, Customer
from .suppliers_repo import SuppliersRepo, Supplier

if TYPE_CHECKING:
    from ..store import Store

Contact = tuple[str, Union[Customer, Supplier]]


class ContactsRepo:
    def __init__(self, store: Store):
        self.customers = CustomersRepo(store)
        self.suppliers = SuppliersRepo(store)

    @staticmethod
    def _merge(customers: list[Customer], suppliers: list[Supplier]) -> list[Contact]:
        out: list[Contact] = [("customer", c) for c in customers]
        out += [("supplier", s) for s in suppliers]
        out.sort(key=lambda kv: kv[1].name.casefold())
        return out

    def list_contacts(self) -> list[Contact]:
        return self._merge(self.customers.list_customers(), self.suppliers.list_suppliers())

    def search_contacts(self, fragment: str) -> list[Contact]:
        if fragment is None or fragment.strip() == "":
            return self.list_contacts()
        return self._merge(
            self.customers.search_by_name(fragment),
            self.suppliers.search_by_name(fragment),
        )
