"""Django ePharmacy models.

Provides:
- PharmacyBaseModel: UUID PK, timestamps, is_deleted soft delete
- InventoryItem: Stocked item, never physically removed
- Cart: One cart per customer email with cached live-price total
- CartItem: Line item pairing an inventory item with a quantity
"""

import uuid
from decimal import Decimal

from django.core.validators import (
    MaxLengthValidator,
    MinLengthValidator,
    MinValueValidator,
    RegexValidator,
)
from django.db import models
from django.db.models import Q, Sum
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


ITEM_CODE_PATTERN = r'^[A-Z0-9_-]+$'


# =============================================================================
# Soft Delete Base
# =============================================================================

class SoftDeleteQuerySet(models.QuerySet):
    """QuerySet with helpers for the is_deleted flag."""

    def alive(self):
        return self.filter(is_deleted=False)

    def dead(self):
        return self.filter(is_deleted=True)


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Manager that excludes soft-deleted objects by default.

    This is the single place the is_deleted filter lives. Every read in
    the services goes through it, so deleted records cannot leak into
    listings or lookups.

    Use .with_deleted() to include soft-deleted objects.
    """

    def get_queryset(self):
        """Return only non-deleted objects."""
        return super().get_queryset().alive()

    def with_deleted(self):
        """Include soft-deleted objects in queryset."""
        return SoftDeleteQuerySet(self.model, using=self._db)


class PharmacyBaseModel(models.Model):
    """Abstract base: UUID primary key, timestamps and soft delete.

    Attributes:
        is_deleted: True once soft-deleted; the row is kept
        deleted_at: When the record was soft-deleted
        objects: Manager that excludes deleted records
        all_objects: Manager that includes all records
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)
    is_deleted = models.BooleanField(_('is deleted'), default=False, db_index=True)
    deleted_at = models.DateTimeField(_('deleted at'), null=True, blank=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    def soft_delete(self):
        """Flip is_deleted and stamp deleted_at. The row is never removed."""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])


# =============================================================================
# InventoryItem
# =============================================================================

class InventoryItem(PharmacyBaseModel):
    """A stocked pharmacy item.

    - item_code is normalized uppercase and unique across all rows,
      including soft-deleted ones; it is immutable after creation
    - in_stock_quantity is only ever written by InventoryCatalog
    - Carts read stock as a ceiling; they never decrement it
    """

    item_name = models.CharField(
        _('item name'),
        max_length=100,
        validators=[MinLengthValidator(1)],
    )
    item_code = models.CharField(
        _('item code'),
        max_length=20,
        unique=True,
        validators=[
            MinLengthValidator(3),
            RegexValidator(
                ITEM_CODE_PATTERN,
                _('Item code can only contain uppercase letters, numbers, hyphens, and underscores'),
            ),
        ],
    )
    supplier_email = models.EmailField(
        _('supplier email'),
        db_index=True,
    )
    price = models.DecimalField(
        _('price'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    in_stock_quantity = models.PositiveIntegerField(
        _('in stock quantity'),
        db_index=True,
    )
    expire_date = models.DateTimeField(
        _('expire date'),
        null=True,
        blank=True,
        db_index=True,
    )
    category = models.CharField(
        _('category'),
        max_length=100,
        blank=True,
    )
    description = models.TextField(
        _('description'),
        blank=True,
        validators=[MaxLengthValidator(500)],
    )
    image_url = models.CharField(
        _('image URL'),
        max_length=500,
        blank=True,
    )

    class Meta:
        verbose_name = _('inventory item')
        verbose_name_plural = _('inventory items')
        ordering = ['-created_at']
        indexes = [
            models.Index(
                fields=['in_stock_quantity', 'expire_date'],
                name='inventoryitem_stock_expiry_idx',
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(price__gte=0),
                name='inventoryitem_price_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.item_name} ({self.item_code})'

    @property
    def is_expired(self):
        """True when an expiry date is set and has passed."""
        return self.expire_date is not None and self.expire_date < timezone.now()


# =============================================================================
# Cart
# =============================================================================

class Cart(models.Model):
    """Per-customer shopping cart.

    - One cart per owner email, created lazily, never deleted
    - total is a cache of sum(live price * quantity), rebuilt on every mutation
    - Quantities are advisory holds, not stock reservations
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_email = models.EmailField(
        _('owner email'),
        unique=True,
    )
    total = models.DecimalField(
        _('total'),
        max_digits=24,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('cart')
        verbose_name_plural = _('carts')
        constraints = [
            models.CheckConstraint(
                condition=Q(total__gte=0),
                name='cart_total_non_negative',
            ),
        ]

    def __str__(self):
        return f"Cart for {self.owner_email}"

    @property
    def item_count(self):
        """Total quantity of all items in cart."""
        return self.items.aggregate(total=Sum('quantity'))['total'] or 0


class CartItem(models.Model):
    """Line item in a cart. Exists only while quantity >= 1."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('cart'),
    )
    inventory_item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name='cart_items',
        verbose_name=_('inventory item'),
    )
    quantity = models.PositiveIntegerField(_('quantity'), default=1)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('cart item')
        verbose_name_plural = _('cart items')
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['cart', 'inventory_item'],
                name='unique_cart_inventory_item',
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name='cartitem_quantity_positive',
            ),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.inventory_item.item_name}"
