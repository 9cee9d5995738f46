"""Django ePharmacy - Pharmacy inventory catalog with stock-guarded carts.

Provides:
- InventoryItem: Stocked item with soft delete and supplier contact
- Cart / CartItem: Per-customer cart whose quantities never exceed live stock
- InventoryCatalog: Item validation, queries, low-stock notifications
- CartStore: Cart mutations with live-price totals

Usage:
    INSTALLED_APPS = [
        ...
        'django_epharmacy',
    ]

    from django_epharmacy.services import CartStore, InventoryCatalog

    catalog = InventoryCatalog()
    carts = CartStore()

See conf.py for all configuration options.
"""

__version__ = "0.1.0"
