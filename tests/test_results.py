"""Tests for ServiceResult, storage_guard and settings lookup."""

import logging

import pytest
from django.db import DatabaseError, OperationalError

from django_epharmacy.conf import get_low_stock_threshold, get_setting
from django_epharmacy.exceptions import AssetUploadError
from django_epharmacy.results import ErrorCode, ServiceResult, storage_guard


class TestServiceResult:
    def test_ok(self):
        result = ServiceResult.ok([1, 2])

        assert result
        assert result.data == [1, 2]
        assert result.code is None
        assert result.errors == {}

    def test_fail(self):
        result = ServiceResult.fail(
            ErrorCode.VALIDATION_ERROR, "Bad input", errors={"price": ["Required."]}
        )

        assert not result
        assert result.code == "VALIDATION_ERROR"
        assert result.error == "Bad input"
        assert result.errors == {"price": ["Required."]}


class TestStorageGuard:
    def test_passes_results_through(self):
        @storage_guard("Failed to do thing")
        def action(value):
            return ServiceResult.ok(value)

        assert action(3).data == 3
        assert action.__name__ == "action"

    def test_database_error_becomes_result(self, caplog):
        @storage_guard("Failed to do thing")
        def action():
            raise OperationalError("database is locked")

        with caplog.at_level(logging.ERROR, logger="django_epharmacy.results"):
            result = action()

        assert result.code == ErrorCode.STORAGE_ERROR
        assert result.error == "Failed to do thing: database is locked"
        assert "database is locked" in caplog.text

    def test_upload_error_becomes_result(self):
        @storage_guard("Failed to save")
        def action():
            raise AssetUploadError("x.png", "quota exceeded")

        result = action()

        assert result.code == ErrorCode.STORAGE_ERROR
        assert "quota exceeded" in result.error

    def test_other_errors_propagate(self):
        @storage_guard("Failed to do thing")
        def action():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            action()

    def test_database_error_base_class(self):
        @storage_guard("Failed")
        def action():
            raise DatabaseError("gone")

        assert action().error == "Failed: gone"


class TestSettings:
    def test_defaults(self):
        assert get_low_stock_threshold() == 10
        assert get_setting("ASSET_UPLOAD_PREFIX") == "inventory/"
        assert get_setting("NOTIFICATION_FROM_EMAIL") is None

    def test_override(self, settings):
        settings.PHARMACY_LOW_STOCK_THRESHOLD = "25"

        assert get_low_stock_threshold() == 25

    def test_unknown_setting_uses_given_default(self):
        assert get_setting("NOT_A_SETTING", "fallback") == "fallback"
