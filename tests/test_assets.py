"""Tests for the image asset store."""

from unittest import mock

import pytest
from django.core.files.storage import FileSystemStorage, default_storage
from django.core.files.uploadedfile import SimpleUploadedFile

from django_epharmacy.assets import StorageAssetStore, get_asset_store
from django_epharmacy.exceptions import AssetUploadError
from tests.fakes import FakeAssetStore


@pytest.fixture
def storage(tmp_path):
    return FileSystemStorage(location=str(tmp_path), base_url="/media/")


def image(name="para.png"):
    return SimpleUploadedFile(name, b"\x89PNG\r\n\x1a\n", content_type="image/png")


class TestStorageAssetStore:
    def test_upload_saves_file_and_returns_url(self, storage, tmp_path):
        store = StorageAssetStore(storage=storage)

        url = store.upload(image())

        assert url.startswith("/media/inventory/")
        assert url.endswith("-para.png")
        saved = list((tmp_path / "inventory").iterdir())
        assert len(saved) == 1
        assert saved[0].read_bytes() == b"\x89PNG\r\n\x1a\n"

    def test_names_are_unique(self, storage):
        store = StorageAssetStore(storage=storage)

        assert store.upload(image()) != store.upload(image())

    def test_custom_prefix(self, storage):
        store = StorageAssetStore(storage=storage, prefix="products/")

        assert store.upload(image()).startswith("/media/products/")

    def test_prefix_from_settings(self, storage, settings):
        settings.PHARMACY_ASSET_UPLOAD_PREFIX = "catalog/"

        assert StorageAssetStore(storage=storage).prefix == "catalog/"

    def test_unsafe_filename_sanitized(self, storage):
        store = StorageAssetStore(storage=storage)

        name = store.build_name(image("../../my photo.png"))

        assert name.startswith("inventory/")
        assert name.endswith("-my_photo.png")
        assert ".." not in name

    def test_storage_failure_raises_upload_error(self, storage):
        store = StorageAssetStore(storage=storage)

        with mock.patch.object(storage, "save", side_effect=OSError("disk full")):
            with pytest.raises(AssetUploadError) as exc_info:
                store.upload(image())

        assert exc_info.value.reason == "disk full"
        assert "disk full" in str(exc_info.value)

    def test_default_storage(self):
        assert StorageAssetStore().storage is default_storage


class TestGetAssetStore:
    def test_default(self):
        assert isinstance(get_asset_store(), StorageAssetStore)

    def test_configured(self, settings):
        settings.PHARMACY_ASSET_STORE = "tests.fakes.FakeAssetStore"

        assert isinstance(get_asset_store(), FakeAssetStore)
