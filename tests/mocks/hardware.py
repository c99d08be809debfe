import threading
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from tbwmon.storage.smart import DeviceInfo, SmartctlProber, Unavailable


class MockProber(SmartctlProber):
    """Prober answering from canned readings instead of running smartctl.

    A reading may be an int (GB), an Unavailable, or an exception instance
    that is raised when the drive is probed.
    """

    def __init__(
        self,
        devices: Optional[List[DeviceInfo]] = None,
        readings: Optional[Dict[str, Union[int, Unavailable, Exception]]] = None
    ):
        super().__init__(smartctl_path="smartctl-not-used")
        self.devices = devices or []
        self.readings = readings or {}
        self.probed: List[str] = []

    def enumerate(self) -> List[DeviceInfo]:
        return list(self.devices)

    def read_cumulative_writes(self, model_key: str, serial: Optional[str] = None):
        self.probed.append(model_key)
        reading = self.readings.get(model_key, Unavailable(f"no device found with model {model_key}"))
        if isinstance(reading, Exception):
            raise reading
        return reading


class SlowMockProber(MockProber):
    """MockProber that holds each counter read and records overlapping reads."""

    def __init__(self, *args, delay: float = 0.05, **kwargs):
        super().__init__(*args, **kwargs)
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def read_cumulative_writes(self, model_key: str, serial: Optional[str] = None):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return super().read_cumulative_writes(model_key, serial)
        finally:
            with self._lock:
                self.active -= 1


class MockOracle:
    """Time source with settable remote and local clocks."""

    def __init__(self, remote: datetime, local: Optional[datetime] = None, reachable: bool = True):
        self.remote = remote
        self.local = local or remote
        self.reachable = reachable
        self.called = threading.Event()

    def now(self) -> datetime:
        self.called.set()
        return self.remote if self.reachable else self.local

    def is_remote_reachable(self) -> bool:
        return self.reachable

    def local_now(self) -> datetime:
        return self.local


class MockClock:
    """Callable wall clock that tests move by hand."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += timedelta(**delta)
