"""API route modules."""

from . import devices, samples

__all__ = ["devices", "samples"]
