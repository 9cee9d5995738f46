"""Inventory catalog service.

- Items are validated and normalized before any write
- item_code is unique across every record, soft-deleted ones included
- Deletion only flips is_deleted; rows are never removed
- Reads go through InventoryItem.objects, which hides deleted rows
- Items seen below the low-stock threshold trigger a notification that is
  handed to a background executor after commit; delivery never delays the
  caller and failures are logged, never raised
"""

import logging
from concurrent.futures import Executor
from functools import partial
from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from ..assets import AssetStore, get_asset_store
from ..conf import get_low_stock_threshold
from ..locks import KeyedLock, inventory_key, process_locks
from ..models import InventoryItem
from ..notifications import (
    NotificationGateway,
    get_notification_executor,
    get_notification_gateway,
)
from ..results import ErrorCode, ServiceResult, storage_guard
from ..validation import (
    CREATE_FIELDS,
    ItemChanges,
    normalize_email,
    normalize_item_fields,
    parse_id,
)

logger = logging.getLogger(__name__)


class InventoryCatalog:
    """Owns InventoryItem records.

    Collaborators default to the ones configured in settings; pass your own
    to isolate tests or to share a lock registry.

    Usage:
        catalog = InventoryCatalog()
        result = catalog.create_item({
            'item_name': 'Paracetamol 500mg',
            'item_code': 'para-001',
            'supplier_email': 'orders@supplier.test',
            'price': '2.50',
            'in_stock_quantity': 5,
        })
        if result:
            item = result.data
    """

    SEARCH_FIELDS = ('item_name', 'item_code', 'description', 'category', 'supplier_email')

    def __init__(
        self,
        notifier: Optional[NotificationGateway] = None,
        asset_store: Optional[AssetStore] = None,
        locks: Optional[KeyedLock] = None,
        low_stock_threshold: Optional[int] = None,
        executor: Optional[Executor] = None,
    ):
        self.notifier = notifier if notifier is not None else get_notification_gateway()
        self.asset_store = asset_store if asset_store is not None else get_asset_store()
        self.locks = locks if locks is not None else process_locks
        self._low_stock_threshold = low_stock_threshold
        self.executor = executor if executor is not None else get_notification_executor()

    @property
    def low_stock_threshold(self) -> int:
        if self._low_stock_threshold is not None:
            return self._low_stock_threshold
        return get_low_stock_threshold()

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @storage_guard("Failed to create inventory item")
    def create_item(self, data: dict[str, Any], image=None) -> ServiceResult:
        """Validate and persist a new inventory item.

        Args:
            data: Field values keyed by model field name
            image: Optional uploaded file, stored through the asset store

        Returns:
            ServiceResult with the saved InventoryItem, or
            VALIDATION_ERROR / DUPLICATE_ITEM_CODE
        """
        data = {k: v for k, v in (data or {}).items() if k in CREATE_FIELDS}
        values, errors = normalize_item_fields(data)

        item = InventoryItem(**values)
        try:
            item.full_clean(exclude=list(errors), validate_unique=False)
        except ValidationError as e:
            errors = {**e.message_dict, **errors}
        if errors:
            return _validation_failed(errors)

        # Deleted items keep their code reserved
        if InventoryItem.all_objects.filter(item_code=item.item_code).exists():
            return _duplicate_code(item.item_code)

        try:
            with transaction.atomic():
                item.save(force_insert=True)
                # Upload only once the row exists; a failed upload rolls it back
                if image is not None:
                    item.image_url = self.asset_store.upload(image)
                    item.save(update_fields=['image_url'])
        except IntegrityError:
            # Lost a race with a concurrent insert of the same code
            return _duplicate_code(item.item_code)

        logger.info("Created inventory item %s (%s)", item.item_code, item.pk)
        return ServiceResult.ok(item)

    @storage_guard("Failed to retrieve inventory items")
    def get_all_items(self, search: Optional[str] = None) -> ServiceResult:
        """List non-deleted items, newest first.

        Args:
            search: Case-insensitive substring matched against name, code,
                description, category and supplier email (any of them)

        Every returned item below the low-stock threshold schedules a
        low-stock notification.
        """
        queryset = InventoryItem.objects.order_by('-created_at')

        term = search.strip() if isinstance(search, str) else ''
        if term:
            query = Q()
            for name in self.SEARCH_FIELDS:
                query |= Q(**{f'{name}__icontains': term})
            queryset = queryset.filter(query)

        items = list(queryset)

        threshold = self.low_stock_threshold
        for item in items:
            if item.in_stock_quantity < threshold:
                self._schedule_low_stock(item)

        return ServiceResult.ok(items)

    @storage_guard("Failed to retrieve inventory item")
    def get_item_by_id(self, item_id) -> ServiceResult:
        pk = parse_id(item_id)
        if pk is None:
            return _invalid_id()

        item = InventoryItem.objects.filter(pk=pk).first()
        if item is None:
            return _not_found()
        return ServiceResult.ok(item)

    @storage_guard("Failed to update inventory item")
    def update_item(self, item_id, payload: dict[str, Any], image=None) -> ServiceResult:
        """Apply a partial update to an item.

        item_code and unknown keys are dropped. Only the fields present are
        validated; an expiry date already on the record is not re-checked.

        Args:
            item_id: Target item id
            payload: Partial field values
            image: Optional uploaded file replacing image_url

        Returns:
            ServiceResult with the updated InventoryItem
        """
        pk = parse_id(item_id)
        if pk is None:
            return _invalid_id()

        changes = ItemChanges.from_payload(payload)
        if changes.ignored:
            logger.debug("Ignoring non-updatable fields %s for item %s", changes.ignored, pk)

        values, errors = normalize_item_fields(changes.fields)

        with self.locks.hold(inventory_key(pk)), transaction.atomic():
            item = InventoryItem.objects.select_for_update().filter(pk=pk).first()
            if item is None:
                return _not_found()

            for name, value in values.items():
                setattr(item, name, value)

            untouched = [
                f.name for f in InventoryItem._meta.concrete_fields if f.name not in values
            ]
            try:
                item.full_clean(exclude=untouched + list(errors), validate_unique=False)
            except ValidationError as e:
                errors = {**e.message_dict, **errors}
            if errors:
                return _validation_failed(errors)

            try:
                with transaction.atomic():
                    item.save(update_fields=[*values, 'updated_at'])
            except IntegrityError:
                return _duplicate_code(item.item_code)

            # Field changes are rolled back with the outer block if this fails
            if image is not None:
                item.image_url = self.asset_store.upload(image)
                item.save(update_fields=['image_url', 'updated_at'])

            if item.in_stock_quantity < self.low_stock_threshold:
                self._schedule_low_stock(item)

        return ServiceResult.ok(item)

    @storage_guard("Failed to delete inventory item")
    def delete_item(self, item_id) -> ServiceResult:
        """Soft delete an item. Fails NOT_FOUND if absent or already deleted."""
        pk = parse_id(item_id)
        if pk is None:
            return _invalid_id()

        with self.locks.hold(inventory_key(pk)), transaction.atomic():
            item = InventoryItem.objects.select_for_update().filter(pk=pk).first()
            if item is None:
                return ServiceResult.fail(
                    ErrorCode.NOT_FOUND,
                    "Inventory item not found or already deleted",
                )
            item.soft_delete()

        logger.info("Soft-deleted inventory item %s (%s)", item.item_code, item.pk)
        return ServiceResult.ok(item)

    # -------------------------------------------------------------------------
    # Specialized queries
    # -------------------------------------------------------------------------

    @storage_guard("Failed to retrieve expired items")
    def get_expired_items(self) -> ServiceResult:
        items = InventoryItem.objects.filter(
            expire_date__lt=timezone.now(),
        ).order_by('expire_date')
        return ServiceResult.ok(list(items))

    @storage_guard("Failed to retrieve non-expired items")
    def get_non_expired_items(self) -> ServiceResult:
        items = InventoryItem.objects.filter(
            Q(expire_date__isnull=True) | Q(expire_date__gte=timezone.now())
        ).order_by(F('expire_date').desc(nulls_last=True))
        return ServiceResult.ok(list(items))

    @storage_guard("Failed to retrieve supplier items")
    def get_items_by_supplier(self, supplier_email: Optional[str]) -> ServiceResult:
        email = normalize_email(supplier_email)
        if not email:
            return ServiceResult.fail(
                ErrorCode.MISSING_SUPPLIER_EMAIL,
                "Supplier email is required",
            )

        items = InventoryItem.objects.filter(supplier_email=email).order_by('item_name')
        return ServiceResult.ok(list(items))

    @storage_guard("Failed to retrieve low stock items")
    def get_low_stock_items(self, threshold: Optional[int] = None) -> ServiceResult:
        if threshold is None:
            threshold = self.low_stock_threshold

        items = InventoryItem.objects.filter(
            in_stock_quantity__lt=threshold,
        ).order_by('in_stock_quantity')
        return ServiceResult.ok(list(items))

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _schedule_low_stock(self, item: InventoryItem) -> None:
        """Submit the alert to the executor once the surrounding transaction commits.

        Outside a transaction the hand-off happens immediately. The caller
        never waits for delivery.
        """
        transaction.on_commit(partial(self.executor.submit, self._notify_low_stock, item))

    def _notify_low_stock(self, item: InventoryItem) -> None:
        try:
            self.notifier.low_stock(item)
        except Exception as e:
            logger.warning(
                "Low stock notification failed for %s: %s", item.item_code, e
            )


def _invalid_id() -> ServiceResult:
    return ServiceResult.fail(ErrorCode.INVALID_ID, "Invalid inventory ID format")


def _not_found() -> ServiceResult:
    return ServiceResult.fail(ErrorCode.NOT_FOUND, "Inventory item not found")


def _duplicate_code(item_code: str) -> ServiceResult:
    return ServiceResult.fail(
        ErrorCode.DUPLICATE_ITEM_CODE,
        f"Item code '{item_code}' already exists",
    )


def _validation_failed(errors: dict[str, list[str]]) -> ServiceResult:
    fields = ", ".join(sorted(errors))
    return ServiceResult.fail(
        ErrorCode.VALIDATION_ERROR,
        f"Invalid inventory item fields: {fields}",
        errors=errors,
    )
