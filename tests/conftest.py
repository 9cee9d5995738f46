"""Pytest configuration for django-epharmacy tests."""

import itertools
from decimal import Decimal

import pytest

from django_epharmacy.locks import KeyedLock
from django_epharmacy.models import InventoryItem
from django_epharmacy.services import CartStore, InventoryCatalog
from tests.fakes import FakeAssetStore, ImmediateExecutor, RecordingNotifier


@pytest.fixture
def notifier():
    """Notification gateway that records alerts."""
    return RecordingNotifier()


@pytest.fixture
def asset_store():
    """Asset store that returns fake CDN URLs."""
    return FakeAssetStore()


@pytest.fixture
def locks():
    """Lock registry isolated to one test."""
    return KeyedLock()


@pytest.fixture
def executor():
    """Delivers notifications synchronously."""
    return ImmediateExecutor()


@pytest.fixture
def catalog(notifier, asset_store, locks, executor):
    """InventoryCatalog wired to test doubles."""
    return InventoryCatalog(
        notifier=notifier, asset_store=asset_store, locks=locks, executor=executor
    )


@pytest.fixture
def carts(locks):
    """CartStore sharing the catalog's lock registry."""
    return CartStore(locks=locks)


@pytest.fixture
def owner():
    return "patient@example.com"


@pytest.fixture
def item_data():
    """Valid create payload."""
    return {
        "item_name": "Paracetamol 500mg",
        "item_code": "para-001",
        "supplier_email": "  Orders@MediSupply.TEST ",
        "price": "2.50",
        "in_stock_quantity": 5,
        "category": "Analgesics",
        "description": "Pain and fever relief tablets",
    }


@pytest.fixture
def make_item(db):
    """Factory creating InventoryItem rows directly."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        fields = {
            "item_name": f"Item {n}",
            "item_code": f"ITEM-{n:03d}",
            "supplier_email": "orders@medisupply.test",
            "price": Decimal("1.00"),
            "in_stock_quantity": 50,
        }
        fields.update(overrides)
        return InventoryItem.objects.create(**fields)

    return _make
