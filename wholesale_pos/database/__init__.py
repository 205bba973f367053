# database/__init__.py
from __future__ import annotations

from .store import Store, get_connection, MEMORY

__all__ = [
    "Store",
    "get_connection",
    "MEMORY",
]
