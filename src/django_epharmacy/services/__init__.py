"""Pharmacy services.

- InventoryCatalog: item CRUD, soft delete, queries, low-stock alerts
- CartStore: stock-guarded cart mutations with live-price totals
"""

from .cart import CartStore
from .inventory import InventoryCatalog

__all__ = [
    "CartStore",
    "InventoryCatalog",
]
