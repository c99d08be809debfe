"""
Drive registry.

Reconciles drives reported by the prober against the catalog of known drives:
new (model, serial) pairs are registered, known drives that were disabled can
be re-enabled, and drives that stop answering are taken out of monitoring.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from ..core.exceptions import DeviceNotFoundError
from .history import TbwHistoryDB
from .models import Device
from .smart import DeviceInfo, SmartctlProber

logger = logging.getLogger(__name__)


@dataclass
class ReconcileSummary:
    """Outcome of a reconcile pass, as lists of devices."""
    registered: List[Device] = field(default_factory=list)
    reenabled: List[Device] = field(default_factory=list)
    unchanged: List[Device] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Dict]]:
        return {
            "registered": [device.to_dict() for device in self.registered],
            "reenabled": [device.to_dict() for device in self.reenabled],
            "unchanged": [device.to_dict() for device in self.unchanged]
        }


class DeviceRegistry:
    """Catalog of known drives and their monitoring flag."""

    def __init__(
        self,
        history_db: TbwHistoryDB,
        prober: Optional[SmartctlProber] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """Initialize the registry.

        Args:
            history_db: Durable store holding the device catalog
            prober: Prober used by the detection path (optional)
            clock: Source of registration timestamps
        """
        self.history_db = history_db
        self.prober = prober
        self.clock = clock

    def reconcile(
        self,
        probed: Iterable[DeviceInfo],
        monitor_new_by_default: bool,
        reenable: bool = True
    ) -> ReconcileSummary:
        """Register unknown drives and optionally re-enable disabled ones.

        Safe to call repeatedly: drives already known are never registered a
        second time.
        """
        summary = ReconcileSummary()

        for info in probed:
            existing = self.history_db.find_device(info.model, info.serial)

            if existing is None:
                device = Device(
                    model=info.model,
                    serial=info.serial,
                    capacity_gb=info.capacity_gb,
                    registered_at=self.clock(),
                    monitored=monitor_new_by_default
                )
                device = self.history_db.save_device(device)
                logger.info(
                    f"Registered drive {device.model} ({device.serial}), "
                    f"monitored={device.monitored}"
                )
                summary.registered.append(device)
            elif reenable and not existing.monitored:
                existing.monitored = True
                existing = self.history_db.save_device(existing)
                logger.info(f"Re-enabled monitoring for drive {existing.model} ({existing.serial})")
                summary.reenabled.append(existing)
            else:
                summary.unchanged.append(existing)

        return summary

    def detect_and_register(self, monitor_new_by_default: bool = False) -> ReconcileSummary:
        """Probe attached drives and reconcile them against the catalog."""
        if self.prober is None:
            raise RuntimeError("DeviceRegistry has no prober configured")
        return self.reconcile(self.prober.enumerate(), monitor_new_by_default)

    def disable_monitoring(self, model_key: str, serial: Optional[str] = None) -> bool:
        """Stop monitoring an unreachable drive.

        Best effort and independent of the caller's work: failures are logged
        and reported as False, never raised.
        """
        try:
            changed = self.history_db.set_monitored(model_key, False, serial=serial)
        except Exception as e:
            logger.error(f"Could not disable monitoring for drive {model_key}: {e}")
            return False

        if changed:
            logger.warning(f"Disabled monitoring for unavailable drive {model_key}")
        return changed > 0

    def set_monitoring(self, device_id: int, monitored: bool) -> Device:
        """Operator toggle of a drive's monitored flag.

        Raises:
            DeviceNotFoundError: If no drive has this id
        """
        device = self.history_db.get_device(device_id)
        if device is None:
            logger.error(f"Drive with id {device_id} not found")
            raise DeviceNotFoundError(device_id)

        device.monitored = monitored
        device = self.history_db.save_device(device)
        logger.info(f"Monitoring for drive {device.model} set to {monitored}")
        return device

    def list_devices(self, monitored: Optional[bool] = None) -> List[Device]:
        """Registered drives, optionally only those with the given monitoring flag."""
        if monitored:
            return self.history_db.list_monitored_devices()
        devices = self.history_db.list_devices()
        if monitored is None:
            return devices
        return [device for device in devices if not device.monitored]
