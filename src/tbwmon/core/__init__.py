"""Core definitions shared across tbwmon components."""

from tbwmon.core.exceptions import (
    ConfigurationError,
    DeviceNotFoundError,
    DuplicateSampleError,
    PersistenceError,
    TbwmonError,
    TimeSourceError,
)

__all__ = [
    "ConfigurationError",
    "DeviceNotFoundError",
    "DuplicateSampleError",
    "PersistenceError",
    "TbwmonError",
    "TimeSourceError",
]
