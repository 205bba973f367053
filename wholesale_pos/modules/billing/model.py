from __future__ import annotations

from PySide6.QtCore import QAbstractTableModel, Qt, QModelIndex

from ...utils.helpers import fmt_money
from .cart import Cart
from .pricing import PricedLine


class CartTableModel(QAbstractTableModel):
    """Read-only view of the cart being billed; call refresh() after each edit."""
    HEADERS = ["Item", "Qty", "Rate", "Disc %", "Final Rate", "Discount", "Total"]

    def __init__(self, cart: Cart | None = None):
        super().__init__()
        self._cart = cart if cart is not None else Cart()
        self._lines: list[PricedLine] = list(self._cart.totals().lines)

    @property
    def cart(self) -> Cart:
        return self._cart

    def rowCount(self, parent=QModelIndex()):
        return len(self._lines)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        ln = self._lines[index.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            mapping = [
                ln.name,
                str(ln.quantity),
                fmt_money(ln.rate),
                f"{ln.discount_percent:g}",
                fmt_money(ln.final_rate),
                fmt_money(ln.discount_amount),
                fmt_money(ln.total),
            ]
            return mapping[index.column()]
        if role == Qt.TextAlignmentRole and index.column() > 0:
            return int(Qt.AlignRight | Qt.AlignVCenter)
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section] if section < len(self.HEADERS) else None
        return super().headerData(section, orientation, role)

    def at(self, row: int) -> PricedLine:
        return self._lines[row]

    def refresh(self):
        self.beginResetModel()
        self._lines = list(self._cart.totals().lines)
        self.endResetModel()

    def replace(self, cart: Cart):
        self._cart = cart
        self.refresh()


class BillsTableModel(QAbstractTableModel):
    HEADERS = ["ID", "Date", "Customer", "Type", "Total"]

    def __init__(self, rows: list):
        super().__init__()
        self._rows = rows

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        b = self._rows[index.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            mapping = [
                b.bill_id,
                b.billing_date,
                b.customer_name,
                b.bill_type,
                fmt_money(b.total_amount),
            ]
            return mapping[index.column()]
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section] if section < len(self.HEADERS) else None
        return super().headerData(section, orientation, role)

    def at(self, row: int):
        return self._rows[row]

    def replace(self, rows: list):
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()


class BillItemsModel(QAbstractTableModel):
    HEADERS = ["#", "Item", "Qty", "Rate", "Final Rate", "Discount", "Total"]

    def __init__(self, rows: list):
        super().__init__()
        self._rows = rows

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, idx, role=Qt.DisplayRole):
        if not idx.isValid():
            return None
        it = self._rows[idx.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            m = [idx.row() + 1, it.item_name, str(it.quantity), fmt_money(it.rate),
                 fmt_money(it.final_rate), fmt_money(it.discount_amount), fmt_money(it.total)]
            return m[idx.column()]
        return None

    def headerData(self, s, o, role=Qt.DisplayRole):
        return self.HEADERS[s] if o == Qt.Horizontal and role == Qt.DisplayRole else super().headerData(s, o, role)

    def replace(self, rows: list):
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()
