"""
Process-level clock manipulation detector.

Checks on a fixed cadence that the wall-clock time elapsed since the previous
check matches the expected interval. A jump beyond the tolerance in either
direction is treated as clock manipulation and the process asks to be
restarted. This check does not depend on the remote time service.
"""

import logging
import os
import threading
from datetime import datetime
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Exit status telling the supervisor that a restart is required
RESTART_EXIT_CODE = 10


def request_restart(elapsed_seconds: float) -> None:
    """Terminate the process so that its supervisor restarts it."""
    logger.critical(f"Initiating restart due to clock manipulation (elapsed {elapsed_seconds:.0f}s)")
    logging.shutdown()
    os._exit(RESTART_EXIT_CODE)


class ClockDriftDetector:
    """Detects wall-clock jumps between periodic checks."""

    def __init__(
        self,
        interval: float = 60.0,
        tolerance: float = 120.0,
        clock: Callable[[], datetime] = datetime.now,
        on_drift: Callable[[float], None] = request_restart
    ):
        """Initialize the detector.

        Args:
            interval: Expected seconds between checks
            tolerance: Allowed deviation from ``interval`` in seconds
            clock: Wall clock under observation
            on_drift: Called with the observed elapsed seconds on a jump
        """
        self.interval = interval
        self.tolerance = tolerance
        self.clock = clock
        self.on_drift = on_drift
        self.last_check = clock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        logger.info(f"Clock monitor initialized at {self.last_check}")

    def check(self) -> bool:
        """Compare the elapsed wall-clock time with the expected interval.

        Returns:
            True if the clock looks sane, False if a jump was detected
        """
        current = self.clock()
        elapsed = (current - self.last_check).total_seconds()

        if abs(elapsed - self.interval) > self.tolerance:
            logger.error(
                f"Clock manipulation detected! Expected ~{self.interval:.0f}s, got {elapsed:.0f}s"
            )
            self.on_drift(elapsed)
            return False

        logger.debug(f"Clock integrity check passed. Elapsed: {elapsed:.0f}s")
        self.last_check = current
        return True

    def reset(self) -> None:
        self.last_check = self.clock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start periodic checks in a daemon thread."""
        if self.running:
            logger.warning("Clock monitor already active")
            return

        self._stop_event.clear()
        self.reset()
        self._thread = threading.Thread(target=self._run, name="clock-drift", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=10)
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.check()
            except Exception as e:
                logger.error(f"Error in clock monitor: {e}")
