"""
Drive probing, registry and TBW sample storage.
"""

from .history import TbwHistoryDB
from .models import Device, Sample
from .recorder import SampleOutcome, SampleRecorder, SampleStatus
from .registry import DeviceRegistry, ReconcileSummary
from .smart import DeviceInfo, SmartctlProber, Unavailable, data_units_to_gb

__all__ = [
    "Device",
    "DeviceInfo",
    "DeviceRegistry",
    "ReconcileSummary",
    "Sample",
    "SampleOutcome",
    "SampleRecorder",
    "SampleStatus",
    "SmartctlProber",
    "TbwHistoryDB",
    "Unavailable",
    "data_units_to_gb",
]
