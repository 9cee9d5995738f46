"""Input normalization for inventory and cart payloads.

Payloads arrive as plain dicts from the transport layer. These helpers
coerce them into model-ready values (trimmed, case-normalized, floored,
quantized) and collect per-field messages. Model-level validation
(lengths, patterns, email format) runs afterwards via full_clean().
"""

import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

CENT = Decimal('0.01')

IMAGE_URL_PATTERN = re.compile(r'^https?://.+\.(jpg|jpeg|png|gif|webp)$', re.IGNORECASE)

# Fields accepted on create
CREATE_FIELDS = frozenset({
    'item_name',
    'item_code',
    'supplier_email',
    'price',
    'in_stock_quantity',
    'expire_date',
    'category',
    'description',
    'image_url',
})

# Fields accepted on update; item_code is immutable after creation
UPDATABLE_FIELDS = CREATE_FIELDS - {'item_code'}


def parse_id(value) -> Optional[uuid.UUID]:
    """Parse an opaque record id. Returns None when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


def normalize_email(value) -> str:
    """Trim and lowercase an email address; None becomes ''."""
    if value is None:
        return ''
    return str(value).strip().lower()


def parse_quantity(value) -> Optional[int]:
    """Parse a cart quantity. Returns None unless value is a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    return None


def to_money(value) -> Decimal:
    """Coerce a price to Decimal with two places, rounding half up.

    Raises:
        ValueError: If value is not numeric or has too many digits
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(value)
    if not amount.is_finite():
        raise ValueError(value)
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Too many digits for the decimal context
        raise ValueError(value)


def to_stock_quantity(value) -> int:
    """Coerce a stock quantity to int, flooring fractional input.

    Raises:
        ValueError: If value is not numeric
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(value)
    if not amount.is_finite():
        raise ValueError(value)
    return int(math.floor(amount))


def to_datetime(value) -> Optional[datetime]:
    """Coerce an expiry value (datetime, date or ISO string) to an aware datetime.

    Raises:
        ValueError: If a string cannot be parsed
    """
    if value in (None, ''):
        return None
    if isinstance(value, str):
        parsed = parse_datetime(value.strip())
        if parsed is None:
            parsed_date = parse_date(value.strip())
            if parsed_date is None:
                raise ValueError(value)
            parsed = datetime.combine(parsed_date, time.min)
        value = parsed
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if not isinstance(value, datetime):
        raise ValueError(value)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _clean_text(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def normalize_item_fields(data: dict[str, Any]) -> tuple[dict[str, Any], dict[str, list[str]]]:
    """Normalize the inventory fields present in data.

    Only keys present in data are touched, so the same routine serves
    full creates and partial updates. An expire_date that is present must
    lie in the future; untouched expiry dates are never re-checked.

    Returns:
        (values, errors) - normalized values and field -> messages
    """
    values = {}
    errors = {}

    for name in ('item_name', 'category', 'description'):
        if name in data:
            values[name] = _clean_text(data[name])

    if 'item_code' in data:
        values['item_code'] = _clean_text(data['item_code']).upper()

    if 'supplier_email' in data:
        values['supplier_email'] = normalize_email(data['supplier_email'])

    if 'price' in data:
        try:
            values['price'] = to_money(data['price'])
        except ValueError:
            errors['price'] = ['Price must be a number.']

    if 'in_stock_quantity' in data:
        try:
            values['in_stock_quantity'] = to_stock_quantity(data['in_stock_quantity'])
        except ValueError:
            errors['in_stock_quantity'] = ['Stock quantity must be a number.']

    if 'expire_date' in data:
        try:
            expire_date = to_datetime(data['expire_date'])
        except ValueError:
            errors['expire_date'] = ['Expiration date is not a valid date.']
        else:
            if expire_date is not None and expire_date <= timezone.now():
                errors['expire_date'] = ['Expiration date must be in the future.']
            else:
                values['expire_date'] = expire_date

    if 'image_url' in data:
        image_url = _clean_text(data['image_url'])
        if image_url and not IMAGE_URL_PATTERN.match(image_url):
            errors['image_url'] = [
                'Image URL must be a valid HTTP(S) URL ending with an image extension.'
            ]
        else:
            values['image_url'] = image_url

    return values, errors


@dataclass(frozen=True)
class ItemChanges:
    """Whitelisted partial update for an InventoryItem.

    Built from an untyped payload; anything outside UPDATABLE_FIELDS
    (item_code included) is dropped and recorded in `ignored`.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    ignored: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Optional[dict[str, Any]]) -> "ItemChanges":
        payload = payload or {}
        fields = {k: v for k, v in payload.items() if k in UPDATABLE_FIELDS}
        ignored = tuple(sorted(k for k in payload if k not in UPDATABLE_FIELDS))
        return cls(fields=fields, ignored=ignored)

    def __bool__(self):
        return bool(self.fields)
