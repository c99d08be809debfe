"""
TBW scheduling and clock tamper guard.

``TbwScheduler`` wakes on a fixed cadence and decides whether it is safe and
appropriate to record today's TBW samples. New samples are only registered
inside a daily window and only while the local clock agrees with the remote
time authority; once today's samples exist, later ticks only revise them.
Samples dated after the trusted date are purged first.

All scheduling passes run under one lock, so a slow smartctl call stalling a
tick past the next firing cannot interleave writes to the same sample.
"""

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .clock.drift import ClockDriftDetector
from .clock.oracle import ClockTrustOracle
from .clock.window import DailyWindow
from .storage.history import TbwHistoryDB
from .storage.recorder import SampleRecorder
from .storage.registry import DeviceRegistry

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Whether new-sample registration is currently armed."""

    DISABLED = "disabled"
    ENABLED = "enabled"


class TickOutcome(Enum):
    """What a scheduling pass ended up doing."""

    REVISED = "revised"
    OUTSIDE_WINDOW = "outside_window"
    DISABLED = "disabled"
    CLOCK_DISTRUSTED = "clock_distrusted"
    REGISTERED = "registered"
    NOTHING_REGISTERED = "nothing_registered"


class TbwScheduler:
    """Drives daily TBW registration and same-day revisions."""

    def __init__(
        self,
        history_db: TbwHistoryDB,
        registry: DeviceRegistry,
        recorder: SampleRecorder,
        oracle: ClockTrustOracle,
        window: Optional[DailyWindow] = None,
        tick_interval: float = 60.0,
        require_remote_time: bool = False,
        drift_detector: Optional[ClockDriftDetector] = None
    ):
        """Initialize the scheduler.

        Args:
            history_db: Durable store for devices and samples
            registry: Drive registry, reconciled on startup
            recorder: Sample recorder performing the per-drive work
            oracle: Trusted time source
            window: Daily registration window (17:00 to 00:00 by default)
            tick_interval: Seconds between scheduling passes
            require_remote_time: Refuse to register while the remote time
                authority is unreachable
            drift_detector: Optional process-level clock jump detector,
                started and stopped together with the scheduler
        """
        self.history_db = history_db
        self.registry = registry
        self.recorder = recorder
        self.oracle = oracle
        self.window = window or DailyWindow()
        self.tick_interval = tick_interval
        self.require_remote_time = require_remote_time
        self.drift_detector = drift_detector

        self._state = SchedulerState.DISABLED
        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self.last_tick: Optional[datetime] = None
        self.last_outcome: Optional[TickOutcome] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def initialize(self) -> SchedulerState:
        """Register attached drives and compute the initial state."""
        try:
            summary = self.registry.detect_and_register(monitor_new_by_default=True)
            logger.info(
                f"Startup scan: {len(summary.registered)} registered, "
                f"{len(summary.reenabled)} re-enabled, {len(summary.unchanged)} unchanged"
            )
        except Exception as e:
            logger.error(f"Error registering drives on startup: {e}")

        try:
            now = self.oracle.now()
        except Exception as e:
            logger.error(f"Error during scheduler initialization: {e}")
            self._state = SchedulerState.DISABLED
            return self._state

        if self.window.contains(now.time()):
            logger.info(f"Started within the registration window ({self._window_label()}). Enabling scheduler.")
            self._state = SchedulerState.ENABLED
        else:
            logger.info(f"Started outside the registration window ({self._window_label()}). Disabling scheduler.")
            self._state = SchedulerState.DISABLED
        return self._state

    def reactivate(self) -> None:
        """Re-arm registration for the day; runs at the window start."""
        logger.info("Re-enabling scheduler for daily execution.")
        self._state = SchedulerState.ENABLED

    def _window_label(self) -> str:
        return f"{self.window.start:%H:%M} - {self.window.end:%H:%M}"

    def _clock_agrees(self, trusted_now: datetime) -> bool:
        """Compare the local calendar date with the remote one."""
        if not self.oracle.is_remote_reachable():
            return True
        local_date = self.oracle.local_now().date()
        if local_date != trusted_now.date():
            logger.warning(
                f"System date {local_date} differs from time service date {trusted_now.date()}"
            )
            return False
        return True

    def _clock_trusted(self, trusted_now: datetime) -> bool:
        if not self._clock_agrees(trusted_now):
            return False
        if self.require_remote_time and not self.oracle.is_remote_reachable():
            logger.warning("Time service unreachable and remote time is required")
            return False
        return True

    def run_tick(self) -> TickOutcome:
        """Run one scheduling pass."""
        with self._pass_lock:
            outcome = self._tick()
        self.last_tick = datetime.now()
        self.last_outcome = outcome
        return outcome

    def _tick(self) -> TickOutcome:
        now = self.oracle.now()
        today = now.date()
        clock_agrees = self._clock_agrees(now)

        if self.oracle.is_remote_reachable() and clock_agrees:
            self.recorder.purge_future_dated(today)

        if self.history_db.has_samples_on(today):
            logger.debug(f"TBW already registered for {today}. Checking for same-day growth.")
            self.recorder.revise_all(today)
            return TickOutcome.REVISED

        if not self.window.contains(now.time()):
            logger.debug(f"Outside registration window ({self._window_label()}). Skipping execution.")
            return TickOutcome.OUTSIDE_WINDOW

        if self._state is SchedulerState.DISABLED:
            logger.debug("Scheduler disabled. Skipping registration.")
            return TickOutcome.DISABLED

        if not clock_agrees:
            logger.warning("System date is manipulated. Skipping TBW registration.")
            return TickOutcome.CLOCK_DISTRUSTED

        if self.require_remote_time and not self.oracle.is_remote_reachable():
            logger.warning("Time service unreachable and remote time is required. Skipping TBW registration.")
            return TickOutcome.CLOCK_DISTRUSTED

        if self.recorder.auto_register(today, now.time()):
            logger.info("TBW registered for at least one drive.")
            self._state = SchedulerState.DISABLED
            return TickOutcome.REGISTERED

        logger.info("No TBW registration needed at this moment.")
        return TickOutcome.NOTHING_REGISTERED

    def register_now(self) -> bool:
        """Attempt registration immediately, regardless of the window."""
        with self._pass_lock:
            now = self.oracle.now()
            if not self._clock_trusted(now):
                logger.warning("System date is manipulated. Skipping on-demand TBW registration.")
                return False
            return self.recorder.auto_register(now.date(), now.time())

    # Background threads

    def start(self) -> None:
        """Initialize and start the tick and reactivation threads."""
        if self.running:
            logger.warning("Scheduler already active")
            return

        self._stop_event.clear()
        self.initialize()
        self._threads = [
            threading.Thread(target=self._tick_loop, name="tbw-tick", daemon=True),
            threading.Thread(target=self._reactivation_loop, name="tbw-reactivate", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        if self.drift_detector is not None:
            self.drift_detector.start()
        logger.info(f"TBW scheduler started with interval {self.tick_interval}s")

    def stop(self) -> None:
        """Stop background threads."""
        self._stop_event.set()
        if self.drift_detector is not None:
            self.drift_detector.stop()
        for thread in self._threads:
            thread.join(timeout=10)
            if thread.is_alive():
                logger.warning(f"Thread {thread.name} did not terminate gracefully")
        self._threads = []
        logger.info("TBW scheduler stopped")

    def _tick_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_tick()
            except Exception as e:
                logger.exception(f"Error during scheduler execution: {e}")
            self._stop_event.wait(self.tick_interval)

    def _reactivation_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                with self._pass_lock:
                    delay = self.window.seconds_until_start(self.oracle.now())
            except Exception as e:
                logger.error(f"Error computing next window start: {e}")
                delay = self.tick_interval
            if self._stop_event.wait(delay):
                break
            self.reactivate()
