"""Wiring of the TBW monitoring components from a configuration."""

import logging
from dataclasses import dataclass

from .clock.drift import ClockDriftDetector
from .clock.oracle import ClockTrustOracle
from .clock.window import DailyWindow
from .config import TbwmonConfig
from .scheduler import TbwScheduler
from .storage.history import TbwHistoryDB
from .storage.recorder import SampleRecorder
from .storage.registry import DeviceRegistry
from .storage.smart import SmartctlProber

logger = logging.getLogger(__name__)


@dataclass
class TbwService:
    """The engine's components, sharing one store and one prober."""
    config: TbwmonConfig
    history_db: TbwHistoryDB
    prober: SmartctlProber
    registry: DeviceRegistry
    recorder: SampleRecorder
    oracle: ClockTrustOracle
    scheduler: TbwScheduler

    @classmethod
    def from_config(cls, config: TbwmonConfig) -> "TbwService":
        history_db = TbwHistoryDB(config.database.url)
        prober = SmartctlProber(
            smartctl_path=config.probe.smartctl_path,
            command_timeout=config.probe.command_timeout,
            scale_factor=config.probe.scale_factor
        )
        registry = DeviceRegistry(history_db, prober)
        recorder = SampleRecorder(
            history_db,
            prober,
            registry,
            revision_threshold_bytes=config.schedule.revision_threshold_bytes
        )
        oracle = ClockTrustOracle(
            api_url=config.time.api_url,
            field=config.time.field,
            timeout=config.time.timeout,
            timezone=config.time.timezone
        )
        drift_detector = None
        if config.drift.enabled:
            drift_detector = ClockDriftDetector(
                interval=config.drift.check_interval,
                tolerance=config.drift.tolerance
            )
        scheduler = TbwScheduler(
            history_db,
            registry,
            recorder,
            oracle,
            window=DailyWindow(config.schedule.window_start, config.schedule.window_end),
            tick_interval=config.schedule.tick_interval,
            require_remote_time=config.time.require_remote_time,
            drift_detector=drift_detector
        )
        logger.info(f"TBW service configured with database {config.database.url}")
        return cls(config, history_db, prober, registry, recorder, oracle, scheduler)

    def close(self) -> None:
        if self.scheduler.running:
            self.scheduler.stop()
        self.history_db.dispose()
