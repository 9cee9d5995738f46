"""Structured service results and error codes.

Every public InventoryCatalog/CartStore method returns a ServiceResult.
Expected failures carry an ErrorCode and message; the transport layer
decides how to present them.
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from django.db import DatabaseError, models

from .exceptions import AssetUploadError

logger = logging.getLogger(__name__)


class ErrorCode(models.TextChoices):
    """Failure codes returned by pharmacy services."""

    INVALID_ID = "INVALID_ID", "Invalid identifier"
    NOT_FOUND = "NOT_FOUND", "Not found"
    DUPLICATE_ITEM_CODE = "DUPLICATE_ITEM_CODE", "Duplicate item code"
    INVALID_QUANTITY = "INVALID_QUANTITY", "Invalid quantity"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK", "Insufficient stock"
    CART_NOT_FOUND = "CART_NOT_FOUND", "Cart not found"
    ITEM_NOT_IN_CART = "ITEM_NOT_IN_CART", "Item not in cart"
    MISSING_SUPPLIER_EMAIL = "MISSING_SUPPLIER_EMAIL", "Missing supplier email"
    VALIDATION_ERROR = "VALIDATION_ERROR", "Validation error"
    STORAGE_ERROR = "STORAGE_ERROR", "Storage error"


@dataclass
class ServiceResult:
    """Result of a service operation."""

    success: bool
    data: Any = None
    code: Optional[str] = None
    error: Optional[str] = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        error: str,
        errors: Optional[dict[str, list[str]]] = None,
    ) -> "ServiceResult":
        return cls(success=False, code=code, error=error, errors=errors or {})

    def __bool__(self):
        return self.success


def storage_guard(message: str):
    """Convert unexpected store failures into a STORAGE_ERROR result.

    Wraps a public service method. DatabaseError (and asset upload failures)
    are logged with traceback and returned with the underlying message
    preserved. Nothing is retried.

    Usage:
        @storage_guard("Failed to add item to cart")
        def add_item(self, owner, item_id, quantity=1):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (DatabaseError, AssetUploadError) as e:
                logger.exception("%s: %s", message, e)
                return ServiceResult.fail(ErrorCode.STORAGE_ERROR, f"{message}: {e}")

        return wrapper

    return decorator
