"""Concurrency probes for the stock ceiling.

These tests run real threads against a shared test database and verify that
cart quantities never overshoot stock when mutations race.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import Decimal

import pytest
from django.db import connection

from django_epharmacy.models import Cart, CartItem, InventoryItem
from django_epharmacy.results import ErrorCode
from django_epharmacy.services import CartStore


def run_concurrently(func, args_list, max_workers=6):
    """Run func for each args tuple in worker threads; return results."""

    def call(args):
        try:
            return func(*args)
        finally:
            # Each worker thread opens its own connection
            connection.close()

    results = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(call, args) for args in args_list]
        for future in as_completed(futures):
            results.append(future.result())
    return results


@pytest.mark.django_db(transaction=True)
class TestCartConcurrency:
    """Verify the stock ceiling holds under concurrent cart mutations."""

    @pytest.fixture
    def item(self):
        return InventoryItem.objects.create(
            item_name="Paracetamol 500mg",
            item_code="PARA-001",
            supplier_email="orders@medisupply.test",
            price=Decimal("2.50"),
            in_stock_quantity=5,
        )

    def test_racing_adds_never_exceed_stock(self, carts, owner, item):
        """Twelve single-unit adds against stock 5: exactly five succeed."""
        results = run_concurrently(carts.add_item, [(owner, item.pk, 1)] * 12)

        succeeded = [r for r in results if r.success]
        rejected = [r for r in results if not r.success]
        assert len(succeeded) == 5
        assert {r.code for r in rejected} == {ErrorCode.INSUFFICIENT_STOCK}

        line = CartItem.objects.get(cart__owner_email=owner, inventory_item=item)
        assert line.quantity == 5
        assert Cart.objects.get(owner_email=owner).total == Decimal("12.50")
        assert Cart.objects.count() == 1
        assert len(carts.locks) == 0

    def test_separate_stores_share_process_locks(self, owner, item):
        """Two CartStore instances still contend on the same owner."""
        stores = [CartStore(), CartStore()]

        def add(n):
            return stores[n % 2].add_item(owner, item.pk, 2)

        results = run_concurrently(add, [(n,) for n in range(4)])

        assert sum(1 for r in results if r.success) == 2
        assert CartItem.objects.get(inventory_item=item).quantity == 4

    def test_carts_of_different_owners_do_not_reserve_stock(self, carts, item):
        """Carts are advisory: every owner may hold the full stock."""
        owners = [f"patient{n}@example.com" for n in range(6)]

        results = run_concurrently(carts.add_item, [(o, item.pk, 5) for o in owners])

        assert all(r.success for r in results)
        assert Cart.objects.count() == 6
        item.refresh_from_db()
        assert item.in_stock_quantity == 5
