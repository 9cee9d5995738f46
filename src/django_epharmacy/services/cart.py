"""Cart services with stock-ceiling enforcement.

- One cart per owner email, created lazily and never deleted
- A line quantity may never exceed the item's current in_stock_quantity
- Every successful mutation rebuilds total from live prices, so a price
  change shows up on the next mutation rather than being locked in
- Carts are advisory holds: adding to a cart never decrements stock
- Mutations for one owner are serialized (KeyedLock + row locks); a failed
  mutation writes nothing
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Prefetch

from ..locks import KeyedLock, cart_key, inventory_key, process_locks
from ..models import Cart, CartItem, InventoryItem
from ..results import ErrorCode, ServiceResult, storage_guard
from ..validation import CENT, normalize_email, parse_id, parse_quantity

logger = logging.getLogger(__name__)


class CartStore:
    """Owns Cart and CartItem records.

    Reads InventoryItem stock and price; never writes them.

    Usage:
        carts = CartStore()
        result = carts.add_item('patient@example.com', item.pk, quantity=2)
        if not result:
            print(result.code, result.error)
    """

    def __init__(self, locks: Optional[KeyedLock] = None):
        self.locks = locks if locks is not None else process_locks

    @storage_guard("Failed to retrieve/create cart")
    def get_or_create(self, owner: str) -> ServiceResult:
        """Return the owner's cart, creating an empty one on first access."""
        owner_email = _clean_owner(owner)
        if owner_email is None:
            return _invalid_owner()

        with self.locks.hold(cart_key(owner_email)):
            cart, created = Cart.objects.get_or_create(owner_email=owner_email)

        if created:
            logger.debug("Created cart for %s", owner_email)
        return ServiceResult.ok(_load(cart.pk))

    @storage_guard("Failed to retrieve cart")
    def get_cart(self, owner: str) -> ServiceResult:
        """Return the owner's cart without creating one."""
        owner_email = _clean_owner(owner)
        if owner_email is None:
            return _invalid_owner()

        cart = Cart.objects.filter(owner_email=owner_email).first()
        if cart is None:
            return _cart_not_found()
        return ServiceResult.ok(_load(cart.pk))

    @storage_guard("Failed to add item to cart")
    def add_item(self, owner: str, item_id, quantity=1) -> ServiceResult:
        """Add quantity units of an item, merging with an existing line.

        Fails INSUFFICIENT_STOCK when existing + quantity exceeds current
        stock; the cart is left exactly as it was (not even created).
        """
        owner_email = _clean_owner(owner)
        if owner_email is None:
            return _invalid_owner()

        pk = parse_id(item_id)
        if pk is None:
            return _invalid_id()

        quantity = parse_quantity(quantity)
        if quantity is None or quantity < 1:
            return _invalid_quantity()

        with self.locks.hold(cart_key(owner_email)), self.locks.hold(inventory_key(pk)):
            with transaction.atomic():
                cart = Cart.objects.select_for_update().filter(owner_email=owner_email).first()

                item = InventoryItem.objects.select_for_update().filter(pk=pk).first()
                if item is None:
                    return ServiceResult.fail(ErrorCode.NOT_FOUND, "Inventory item not found")

                line = None
                if cart is not None:
                    line = cart.items.filter(inventory_item=item).first()

                new_quantity = quantity + (line.quantity if line else 0)
                if new_quantity > item.in_stock_quantity:
                    logger.debug(
                        "Rejected add of %s x %s for %s: %s in stock",
                        quantity, item.item_code, owner_email, item.in_stock_quantity,
                    )
                    if line is not None:
                        message = f"Exceeds available stock ({item.in_stock_quantity})"
                    else:
                        message = f"Only {item.in_stock_quantity} units available"
                    return ServiceResult.fail(ErrorCode.INSUFFICIENT_STOCK, message)

                if cart is None:
                    cart, _ = Cart.objects.get_or_create(owner_email=owner_email)

                if line is None:
                    CartItem.objects.create(cart=cart, inventory_item=item, quantity=new_quantity)
                else:
                    line.quantity = new_quantity
                    line.save(update_fields=['quantity', 'updated_at'])

                _recalculate_total(cart)

        return ServiceResult.ok(_load(cart.pk))

    @storage_guard("Failed to update item quantity")
    def update_quantity(self, owner: str, item_id, quantity) -> ServiceResult:
        """Set the quantity of an existing line.

        Setting the current quantity again is allowed and still refreshes
        the total from live prices.
        """
        owner_email = _clean_owner(owner)
        if owner_email is None:
            return _invalid_owner()

        pk = parse_id(item_id)
        if pk is None:
            return _invalid_id()

        quantity = parse_quantity(quantity)
        if quantity is None or quantity < 1:
            return _invalid_quantity()

        with self.locks.hold(cart_key(owner_email)), self.locks.hold(inventory_key(pk)):
            with transaction.atomic():
                cart = Cart.objects.select_for_update().filter(owner_email=owner_email).first()
                if cart is None:
                    return _cart_not_found()

                line = cart.items.filter(inventory_item_id=pk).first()
                if line is None:
                    return _item_not_in_cart()

                item = InventoryItem.objects.select_for_update().filter(pk=pk).first()
                if item is None:
                    return ServiceResult.fail(ErrorCode.NOT_FOUND, "Inventory item not found")

                if quantity > item.in_stock_quantity:
                    return ServiceResult.fail(
                        ErrorCode.INSUFFICIENT_STOCK,
                        f"Only {item.in_stock_quantity} units available",
                    )

                line.quantity = quantity
                line.save(update_fields=['quantity', 'updated_at'])
                _recalculate_total(cart)

        return ServiceResult.ok(_load(cart.pk))

    @storage_guard("Failed to remove item")
    def remove_item(self, owner: str, item_id) -> ServiceResult:
        owner_email = _clean_owner(owner)
        if owner_email is None:
            return _invalid_owner()

        pk = parse_id(item_id)
        if pk is None:
            return _invalid_id()

        with self.locks.hold(cart_key(owner_email)), transaction.atomic():
            cart = Cart.objects.select_for_update().filter(owner_email=owner_email).first()
            if cart is None:
                return _cart_not_found()

            deleted, _ = cart.items.filter(inventory_item_id=pk).delete()
            if not deleted:
                return _item_not_in_cart()

            _recalculate_total(cart)

        return ServiceResult.ok(_load(cart.pk))

    @storage_guard("Failed to clear cart")
    def clear(self, owner: str) -> ServiceResult:
        owner_email = _clean_owner(owner)
        if owner_email is None:
            return _invalid_owner()

        with self.locks.hold(cart_key(owner_email)), transaction.atomic():
            cart = Cart.objects.select_for_update().filter(owner_email=owner_email).first()
            if cart is None:
                return _cart_not_found()

            cart.items.all().delete()
            cart.total = Decimal('0.00')
            cart.save(update_fields=['total', 'updated_at'])

        return ServiceResult.ok(_load(cart.pk))


def _recalculate_total(cart: Cart) -> None:
    """Rebuild cart.total from each line's current price.

    Lines whose item was soft-deleted after being added still count at
    their live price until removed.
    """
    total = Decimal('0.00')
    for line in cart.items.select_related('inventory_item'):
        total += line.inventory_item.price * line.quantity
    cart.total = total.quantize(CENT, rounding=ROUND_HALF_UP)
    cart.save(update_fields=['total', 'updated_at'])


def _load(cart_pk) -> Cart:
    """Fetch a cart with its line items and their inventory items."""
    lines = CartItem.objects.select_related('inventory_item')
    return Cart.objects.prefetch_related(Prefetch('items', queryset=lines)).get(pk=cart_pk)


def _clean_owner(owner) -> Optional[str]:
    owner_email = normalize_email(owner)
    try:
        validate_email(owner_email)
    except ValidationError:
        return None
    return owner_email


def _invalid_owner() -> ServiceResult:
    return ServiceResult.fail(
        ErrorCode.VALIDATION_ERROR,
        "A valid owner email is required",
        errors={'owner_email': ['Enter a valid email address.']},
    )


def _invalid_id() -> ServiceResult:
    return ServiceResult.fail(ErrorCode.INVALID_ID, "Invalid inventory item ID")


def _invalid_quantity() -> ServiceResult:
    return ServiceResult.fail(ErrorCode.INVALID_QUANTITY, "Quantity must be at least 1")


def _cart_not_found() -> ServiceResult:
    return ServiceResult.fail(ErrorCode.CART_NOT_FOUND, "Cart not found")


def _item_not_in_cart() -> ServiceResult:
    return ServiceResult.fail(ErrorCode.ITEM_NOT_IN_CART, "Item not in cart")
