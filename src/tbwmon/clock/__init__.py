"""
Time sources and clock integrity checks.
"""

from .drift import RESTART_EXIT_CODE, ClockDriftDetector, request_restart
from .oracle import ClockTrustOracle, parse_remote_datetime
from .window import DailyWindow

__all__ = [
    "RESTART_EXIT_CODE",
    "ClockDriftDetector",
    "ClockTrustOracle",
    "DailyWindow",
    "parse_remote_datetime",
    "request_restart",
]
