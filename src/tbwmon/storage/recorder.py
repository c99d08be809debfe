"""
Daily TBW sample recording.

The recorder owns the decision, per drive and per day, to insert a new TBW
sample, revise today's sample after significant same-day writes, or skip. Each
drive is evaluated in isolation so that one failing drive never prevents the
others from being recorded.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import List, Optional

from ..core.exceptions import DuplicateSampleError
from .history import TbwHistoryDB
from .models import Device, Sample
from .registry import DeviceRegistry
from .smart import BYTES_PER_GB, SmartctlProber, Unavailable

logger = logging.getLogger(__name__)

# Minimum same-day growth before today's sample is revised (3 GiB)
DEFAULT_REVISION_THRESHOLD_BYTES = 3 * 1024 * 1024 * 1024


class SampleStatus(Enum):
    """Outcome of a per-drive recording step."""

    CREATED = "created"
    ALREADY_PRESENT = "already_present"
    REVISED = "revised"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SampleOutcome:
    """Per-drive result of a recording step."""
    device_id: int
    status: SampleStatus
    reason: Optional[str] = None

    def to_dict(self):
        return {"device_id": self.device_id, "status": self.status.value, "reason": self.reason}


class SampleRecorder:
    """Creates, revises and purges daily TBW samples."""

    def __init__(
        self,
        history_db: TbwHistoryDB,
        prober: SmartctlProber,
        registry: DeviceRegistry,
        revision_threshold_bytes: int = DEFAULT_REVISION_THRESHOLD_BYTES
    ):
        """Initialize the recorder.

        Args:
            history_db: Durable store for devices and samples
            prober: Source of current TBW readings
            registry: Registry used to disable unreachable drives
            revision_threshold_bytes: Default same-day growth, in bytes,
                required to revise an existing sample
        """
        self.history_db = history_db
        self.prober = prober
        self.registry = registry
        self.revision_threshold_bytes = revision_threshold_bytes

    def ensure_daily_sample(self, device: Device, sample_date: date, sample_time: time) -> SampleOutcome:
        """Record today's sample for a drive unless one already exists."""
        if self.history_db.find_sample(device.id, sample_date) is not None:
            logger.info(f"TBW already registered on {sample_date} for drive {device.model}")
            return SampleOutcome(device.id, SampleStatus.ALREADY_PRESENT)

        logger.info(f"Registering TBW for drive {device.model}")
        reading = self.prober.read_cumulative_writes(device.model, device.serial)
        if isinstance(reading, Unavailable):
            logger.warning(f"Skipped TBW registration for unavailable drive {device.model}: {reading.reason}")
            self.registry.disable_monitoring(device.model, device.serial)
            return SampleOutcome(device.id, SampleStatus.SKIPPED, "device unavailable")

        sample = Sample(device_id=device.id, date=sample_date, time=sample_time, tbw_gb=reading)
        try:
            self.history_db.save_sample(sample)
        except DuplicateSampleError:
            logger.info(f"A concurrent writer already registered {sample_date} for drive {device.model}")
            return SampleOutcome(device.id, SampleStatus.ALREADY_PRESENT)

        logger.info(f"Saved TBW record of {reading}GB for drive {device.model} on {sample_date}")
        return SampleOutcome(device.id, SampleStatus.CREATED)

    def revise_if_drifted(
        self,
        device: Device,
        sample_date: date,
        threshold_bytes: Optional[int] = None
    ) -> SampleOutcome:
        """Overwrite today's sample when the drive has written enough since."""
        if threshold_bytes is None:
            threshold_bytes = self.revision_threshold_bytes

        sample = self.history_db.find_sample(device.id, sample_date)
        if sample is None:
            return SampleOutcome(device.id, SampleStatus.SKIPPED, "no sample")

        reading = self.prober.read_cumulative_writes(device.model, device.serial)
        if isinstance(reading, Unavailable):
            logger.warning(f"Skipped update for unavailable drive {device.model}: {reading.reason}")
            return SampleOutcome(device.id, SampleStatus.SKIPPED, "device unavailable")

        growth_bytes = (reading - sample.tbw_gb) * BYTES_PER_GB
        if growth_bytes < threshold_bytes:
            logger.debug(f"TBW for drive {device.model} grew {reading - sample.tbw_gb}GB, below threshold")
            return SampleOutcome(device.id, SampleStatus.UNCHANGED)

        logger.info(
            f"Updating TBW record for drive {device.model} on {sample_date}: "
            f"{sample.tbw_gb}GB -> {reading}GB"
        )
        sample.tbw_gb = reading
        self.history_db.save_sample(sample)
        return SampleOutcome(device.id, SampleStatus.REVISED)

    def auto_register(self, sample_date: date, sample_time: time) -> bool:
        """Record today's sample for every monitored drive.

        Returns True if at least one new sample was created. When the newest
        stored sample is dated after ``sample_date`` the clock is behind the
        recorded history and nothing is attempted.
        """
        logger.info("Executing TBW auto registration")

        latest = self.history_db.most_recent_sample_date()
        if latest is not None and latest > sample_date:
            logger.warning(
                f"Newest sample is dated {latest}, after {sample_date}; "
                "the clock was set back. Skipping TBW registration."
            )
            return False
        if latest is None:
            logger.info("No previous TBW records found. Proceeding with first registration.")

        devices = self.history_db.list_monitored_devices()
        logger.info(f"Found {len(devices)} monitored drives")

        any_registered = False
        for device in devices:
            try:
                outcome = self.ensure_daily_sample(device, sample_date, sample_time)
            except Exception as e:
                logger.exception(f"Error registering TBW for drive {device.model}. Continuing with others: {e}")
                continue
            if outcome.status is SampleStatus.CREATED:
                any_registered = True

        logger.info(f"TBW auto registration completed. Registered new records: {any_registered}")
        return any_registered

    def revise_all(self, sample_date: date) -> List[SampleOutcome]:
        """Run the same-day revision for every monitored drive."""
        outcomes = []
        for device in self.history_db.list_monitored_devices():
            try:
                outcomes.append(self.revise_if_drifted(device, sample_date))
            except Exception as e:
                logger.exception(f"Error updating TBW for drive {device.model}. Continuing with others: {e}")
                outcomes.append(SampleOutcome(device.id, SampleStatus.SKIPPED, str(e)))
        return outcomes

    def purge_future_dated(self, trusted_date: date) -> int:
        """Delete samples dated strictly after ``trusted_date``."""
        future = self.history_db.list_samples_after(trusted_date)
        if not future:
            return 0

        deleted = self.history_db.delete_samples(future)
        logger.warning(f"Deleted {deleted} TBW records dated after {trusted_date}")
        return deleted
