"""Exceptions for django-epharmacy.

Business-rule failures are reported through ServiceResult, not raised.
These exceptions belong to the external collaborators (asset store,
notification gateway) and are converted at the service boundary.
"""


class PharmacyError(Exception):
    """Base exception for pharmacy errors."""
    pass


class AssetUploadError(PharmacyError):
    """Raised when an item image cannot be stored."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Failed to upload '{filename}': {reason}")


class NotificationError(PharmacyError):
    """Raised by a notification gateway when an alert cannot be delivered."""

    def __init__(self, gateway: str, reason: str, original_error: Exception = None):
        self.gateway = gateway
        self.original_error = original_error
        super().__init__(f"[{gateway}] {reason}")
