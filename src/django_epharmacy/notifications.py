"""Low-stock notification gateways.

InventoryCatalog calls NotificationGateway.low_stock(item) whenever it
observes an item below the low-stock threshold. Delivery is fire-and-forget:
after commit the catalog submits the call to a background executor and logs
any failure there.

Configure the gateway with PHARMACY_NOTIFICATION_GATEWAY (dotted path).
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.module_loading import import_string

from .conf import get_setting
from .exceptions import NotificationError

logger = logging.getLogger(__name__)


class NotificationGateway(ABC):
    """Abstract base class for low-stock alert delivery."""

    gateway_name: str = "base"

    @abstractmethod
    def low_stock(self, item) -> None:
        """Alert that an inventory item is running low.

        Args:
            item: The InventoryItem below threshold

        Raises:
            NotificationError: If the alert could not be delivered
        """
        raise NotImplementedError


class LoggingNotifier(NotificationGateway):
    """Gateway that only logs alerts (for development)."""

    gateway_name = "logging"

    def low_stock(self, item) -> None:
        logger.info(
            "LOW STOCK (not actually sent): %s (%s) has %s left, supplier %s",
            item.item_name,
            item.item_code,
            item.in_stock_quantity,
            item.supplier_email,
        )


class EmailLowStockNotifier(NotificationGateway):
    """Emails the item's supplier using Django's mail framework."""

    gateway_name = "email"

    text_template = "django_epharmacy/email/low_stock.txt"
    html_template = "django_epharmacy/email/low_stock.html"

    def get_subject(self, item) -> str:
        return f"Low Stock Alert: {item.item_name} (Code: {item.item_code})"

    def get_context(self, item) -> dict:
        return {
            "item_name": item.item_name,
            "item_code": item.item_code,
            "current_quantity": item.in_stock_quantity,
            "supplier_email": item.supplier_email,
        }

    def low_stock(self, item) -> None:
        context = self.get_context(item)
        from_email = get_setting("NOTIFICATION_FROM_EMAIL") or settings.DEFAULT_FROM_EMAIL

        try:
            send_mail(
                subject=self.get_subject(item),
                message=render_to_string(self.text_template, context),
                from_email=from_email,
                recipient_list=[item.supplier_email],
                html_message=render_to_string(self.html_template, context),
            )
        except Exception as e:
            raise NotificationError(self.gateway_name, str(e), original_error=e) from e

        logger.info("Low stock email sent to %s for %s", item.supplier_email, item.item_code)


def get_notification_gateway() -> NotificationGateway:
    """Instantiate the gateway configured in PHARMACY_NOTIFICATION_GATEWAY."""
    path = get_setting("NOTIFICATION_GATEWAY")
    return import_string(path)()


_executor = None
_executor_lock = threading.Lock()


def get_notification_executor() -> Executor:
    """Process-wide thread pool that delivers notifications off the caller's thread.

    Created on first use with PHARMACY_NOTIFICATION_WORKERS threads.
    """
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=int(get_setting("NOTIFICATION_WORKERS")),
                thread_name_prefix="pharmacy-notify",
            )
        return _executor
