"""
tbwmon - SSD Total Bytes Written monitoring.

This package samples the TBW counter of locally attached SSDs once per day
through smartctl and keeps doing so correctly when the system clock is reset
or the diagnostics tool fails:
  - Drive detection and TBW reading (``tbwmon.storage.smart``)
  - Drive registry and daily sample recording (``tbwmon.storage``)
  - Trusted time, daily window and clock jump detection (``tbwmon.clock``)
  - The scheduler tying them together (``tbwmon.scheduler``)
  - A FastAPI application and a click command line
"""

__version__ = "0.1.0"
