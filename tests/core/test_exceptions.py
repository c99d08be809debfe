"""
Tests for the tbwmon exception hierarchy.

This module checks error details tracking, inheritance and the string
formatting of error messages.
"""

from datetime import date

import pytest

from tbwmon.core.exceptions import (
    ConfigurationError,
    DeviceNotFoundError,
    DuplicateSampleError,
    PersistenceError,
    TbwmonError,
    TimeSourceError,
)


class TestBaseException:
    """Tests for the base TbwmonError."""

    def test_basic_error(self):
        error = TbwmonError("Something failed")

        assert str(error) == "Something failed"
        assert error.message == "Something failed"
        assert error.details == {}

    def test_error_with_details(self):
        error = TbwmonError("Something failed", {"device": "nvme0"})

        assert str(error) == "Something failed - Details: {'device': 'nvme0'}"

    @pytest.mark.parametrize("error", [
        ConfigurationError("bad config"),
        PersistenceError("db locked"),
        DuplicateSampleError(1, date(2024, 6, 15)),
        DeviceNotFoundError(7),
        TimeSourceError("offline"),
    ])
    def test_error_inheritance(self, error):
        assert isinstance(error, TbwmonError)
        assert isinstance(error, Exception)


class TestSpecificErrors:

    def test_configuration_error_path(self):
        error = ConfigurationError("Invalid configuration", path="/etc/tbwmon.yaml")

        assert error.path == "/etc/tbwmon.yaml"
        assert error.details["path"] == "/etc/tbwmon.yaml"

    def test_persistence_error_operation(self):
        error = PersistenceError("db locked", operation="save_device")
        assert error.details == {"operation": "save_device"}

    def test_duplicate_sample_error(self):
        error = DuplicateSampleError(3, date(2024, 6, 15))

        assert isinstance(error, PersistenceError)
        assert error.device_id == 3
        assert error.sample_date == date(2024, 6, 15)
        assert error.details == {"device_id": 3, "date": "2024-06-15", "operation": "save_sample"}

    def test_device_not_found_error(self):
        error = DeviceNotFoundError(42)

        assert error.message == "Device 42 not found"
        assert error.details["device_id"] == 42

    def test_time_source_error_url(self):
        error = TimeSourceError("offline", url="http://time.test")
        assert error.details["url"] == "http://time.test"

    def test_error_with_cause(self):
        try:
            try:
                raise ValueError("root cause")
            except ValueError as e:
                raise PersistenceError("wrapped", operation="find_sample") from e
        except PersistenceError as error:
            assert isinstance(error.__cause__, ValueError)
