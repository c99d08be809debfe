"""
Custom exceptions for the tbwmon TBW monitoring engine.

This module defines the exception hierarchy used by the engine. Expected,
recoverable outcomes (a disconnected drive, an unreachable time server) are
reported as values by the components that produce them; the exceptions below
are reserved for faults that the caller has to see.
"""

from datetime import date
from typing import Any, Dict, Optional


class TbwmonError(Exception):
    """Base exception for all tbwmon-specific errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize with error message and optional details.

        Args:
            message: Error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Get string representation of the error.

        Returns:
            str: Error message including details if available
        """
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Configuration Errors

class ConfigurationError(TbwmonError):
    """Error raised when the configuration file cannot be read or is invalid."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize with configuration error details.

        Args:
            message: Error message
            path: Optional path of the offending configuration file
            details: Additional error details
        """
        self.path = path
        details_dict = details or {}
        if path:
            details_dict['path'] = path
        super().__init__(message, details_dict)


# Persistence Errors

class PersistenceError(TbwmonError):
    """Error raised when the durable store rejects or fails an operation."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize with persistence error details.

        Args:
            message: Error message
            operation: Optional name of the store operation that failed
            details: Additional error details
        """
        self.operation = operation
        details_dict = details or {}
        if operation:
            details_dict['operation'] = operation
        super().__init__(message, details_dict)


class DuplicateSampleError(PersistenceError):
    """Error raised when a second sample is written for the same device and day."""

    def __init__(
        self,
        device_id: Optional[int],
        sample_date: date,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.device_id = device_id
        self.sample_date = sample_date
        details_dict = details or {}
        details_dict['device_id'] = device_id
        details_dict['date'] = sample_date.isoformat()
        super().__init__(
            "A sample already exists for this device and date",
            operation="save_sample",
            details=details_dict
        )


# Resource Errors

class DeviceNotFoundError(TbwmonError):
    """Error raised when an operator addresses a device id that is not registered."""

    def __init__(self, device_id: int, details: Optional[Dict[str, Any]] = None) -> None:
        self.device_id = device_id
        details_dict = details or {}
        details_dict['device_id'] = device_id
        super().__init__(f"Device {device_id} not found", details_dict)


class TimeSourceError(TbwmonError):
    """Error raised when the remote time authority returns no usable time."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.url = url
        details_dict = details or {}
        if url:
            details_dict['url'] = url
        super().__init__(message, details_dict)
