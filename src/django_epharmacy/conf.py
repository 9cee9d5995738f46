"""Django ePharmacy configuration.

All settings can be overridden in your Django settings.py. Values are read
at call time, so override_settings() in tests takes effect immediately.

Example:
    # settings.py
    PHARMACY_LOW_STOCK_THRESHOLD = 25
    PHARMACY_NOTIFICATION_GATEWAY = 'django_epharmacy.notifications.EmailLowStockNotifier'
"""

from django.conf import settings


DEFAULTS = {
    # Items with in_stock_quantity strictly below this trigger low-stock alerts
    'LOW_STOCK_THRESHOLD': 10,
    # Dotted path to a NotificationGateway subclass
    'NOTIFICATION_GATEWAY': 'django_epharmacy.notifications.LoggingNotifier',
    # Dotted path to an AssetStore subclass
    'ASSET_STORE': 'django_epharmacy.assets.StorageAssetStore',
    # Storage prefix for uploaded item images
    'ASSET_UPLOAD_PREFIX': 'inventory/',
    # Sender for low-stock emails; None falls back to DEFAULT_FROM_EMAIL
    'NOTIFICATION_FROM_EMAIL': None,
    # Worker threads that deliver low-stock notifications in the background
    'NOTIFICATION_WORKERS': 2,
}


def get_setting(name: str, default=None):
    """Get a setting with PHARMACY_ prefix, falling back to DEFAULTS."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"PHARMACY_{name}", default)


def get_low_stock_threshold() -> int:
    """Threshold below which an item counts as low stock."""
    return int(get_setting('LOW_STOCK_THRESHOLD'))
