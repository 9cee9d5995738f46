"""Asset store for inventory item images.

InventoryCatalog hands uploaded image files to AssetStore.upload() and
persists the returned URL on the item.

Configure the store with PHARMACY_ASSET_STORE (dotted path).
"""

import logging
import os
import uuid
from abc import ABC, abstractmethod

from django.core.files.storage import default_storage
from django.utils.module_loading import import_string
from django.utils.text import get_valid_filename

from .conf import get_setting
from .exceptions import AssetUploadError

logger = logging.getLogger(__name__)


class AssetStore(ABC):
    """Abstract base class for image storage."""

    @abstractmethod
    def upload(self, file) -> str:
        """Store a file and return a stable URL for it.

        Raises:
            AssetUploadError: If the file could not be stored
        """
        raise NotImplementedError


class StorageAssetStore(AssetStore):
    """Stores images through a Django storage backend.

    Defaults to default_storage, so MEDIA_ROOT/MEDIA_URL or any configured
    remote backend decides where files land.
    """

    def __init__(self, storage=None, prefix: str = None):
        self.storage = storage or default_storage
        self.prefix = prefix if prefix is not None else get_setting("ASSET_UPLOAD_PREFIX")

    def build_name(self, file) -> str:
        """Unique storage name that keeps the original extension."""
        original = get_valid_filename(os.path.basename(getattr(file, "name", "") or "upload"))
        return f"{self.prefix}{uuid.uuid4().hex[:12]}-{original}"

    def upload(self, file) -> str:
        name = self.build_name(file)
        try:
            saved_name = self.storage.save(name, file)
            url = self.storage.url(saved_name)
        except (OSError, ValueError) as e:
            raise AssetUploadError(name, str(e)) from e

        logger.debug("Stored item image %s at %s", saved_name, url)
        return url


def get_asset_store() -> AssetStore:
    """Instantiate the store configured in PHARMACY_ASSET_STORE."""
    path = get_setting("ASSET_STORE")
    return import_string(path)()
