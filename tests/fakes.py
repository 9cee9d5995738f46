"""Test doubles for the notification gateway, executor and asset store."""

import threading
from concurrent.futures import Executor, Future

from django_epharmacy.assets import AssetStore
from django_epharmacy.exceptions import AssetUploadError, NotificationError
from django_epharmacy.notifications import NotificationGateway


class RecordingNotifier(NotificationGateway):
    """Collects the codes of items it was alerted about."""

    gateway_name = "recording"

    def __init__(self):
        self.alerts = []

    def low_stock(self, item) -> None:
        self.alerts.append(item.item_code)


class FailingNotifier(NotificationGateway):
    """Always fails, like an unreachable mail server."""

    gateway_name = "failing"

    def __init__(self):
        self.attempts = 0

    def low_stock(self, item) -> None:
        self.attempts += 1
        raise NotificationError(self.gateway_name, "SMTP connection refused")


class BlockingNotifier(NotificationGateway):
    """Blocks until released, like a slow mail server."""

    gateway_name = "blocking"

    def __init__(self):
        self.release = threading.Event()
        self.threads = []

    def low_stock(self, item) -> None:
        self.release.wait(timeout=5)
        self.threads.append(threading.current_thread().name)


class FakeAssetStore(AssetStore):
    """Returns predictable CDN URLs without touching storage."""

    def __init__(self):
        self.uploads = []

    def upload(self, file) -> str:
        self.uploads.append(file.name)
        return f"https://cdn.clinic.test/inventory/{file.name}"


class BrokenAssetStore(AssetStore):
    def upload(self, file) -> str:
        raise AssetUploadError(file.name, "bucket unavailable")


class ImmediateExecutor(Executor):
    """Runs submitted calls on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future
