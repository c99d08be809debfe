"""
SMART data collection for TBW monitoring.

This module probes locally attached drives with smartctl. It enumerates block
devices with their identity and capacity, and reads the cumulative "Data Units
Written" counter of a single drive. All label matching and unit normalization
for smartctl's human-oriented text output lives here, behind
``SmartctlProber.enumerate`` and ``SmartctlProber.read_cumulative_writes``.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from ..utils.command import CommandResult, run_command

logger = logging.getLogger(__name__)

# smartctl reports NVMe data units in 512-byte blocks
BLOCK_SIZE = 512

# Empirical factor filling data units up to the manufacturer GB convention
DEFAULT_SCALE_FACTOR = 931.4

BYTES_PER_GB = 1_000_000_000

# Exit status bits 0 and 1 mean the command line did not parse or the
# device could not be opened. Higher bits only describe SMART status and do
# not invalidate a scan or an identity probe.
FATAL_EXIT_BITS = 0b11

MODEL_LABELS = ("Model Number:", "Device Model:")
MODEL_FAMILY_LABEL = "Model Family:"
SERIAL_LABEL = "Serial Number:"
DATA_UNITS_WRITTEN_LABEL = "Data Units Written"

CAPACITY_PATTERN = re.compile(
    r"(?:User Capacity|Namespace\s+\d+\s+Size/Capacity|Total NVM Capacity)\s*:"
    r"\s*[\d,.\s]+?(?:bytes)?\s*\[\s*([\d.,]+)\s*(TB|GB)\s*\]",
    re.IGNORECASE
)


@dataclass(frozen=True)
class DeviceInfo:
    """Identity and capacity of a probed drive."""
    path: str
    model: str
    serial: str
    capacity_gb: int


@dataclass(frozen=True)
class Unavailable:
    """A probe that produced no reading; the drive is treated as disconnected."""
    reason: str

    def __bool__(self) -> bool:
        return False


ProbeResult = Union[int, Unavailable]


def data_units_to_gb(
    data_units: int,
    block_size: int = BLOCK_SIZE,
    scale_factor: float = DEFAULT_SCALE_FACTOR
) -> int:
    """Convert smartctl data units to whole gigabytes written."""
    return round(data_units * block_size * scale_factor / BYTES_PER_GB)


def parse_capacity_gb(line: str) -> Optional[int]:
    """Extract a capacity in GB from a 'User Capacity' or NVMe namespace line."""
    match = CAPACITY_PATTERN.search(line)
    if not match:
        return None

    amount, unit = match.groups()
    try:
        value = float(amount.replace(",", "."))
    except ValueError:
        return None

    if unit.upper() == "TB":
        value *= 1024
    return round(value)


def _label_value(line: str) -> str:
    return line.split(":", 1)[1].strip()


def parse_device_info(path: str, output: str) -> Optional[DeviceInfo]:
    """Parse ``smartctl -i`` output into a DeviceInfo.

    Model, serial and capacity are independently optional in the output. The
    device is returned only when all three were recovered and the capacity
    is positive.
    """
    model = None
    family = None
    serial = None
    capacity = None

    for line in output.splitlines():
        if any(label in line for label in MODEL_LABELS):
            model = _label_value(line)
        elif MODEL_FAMILY_LABEL in line:
            family = _label_value(line)
        elif SERIAL_LABEL in line:
            serial = _label_value(line)
        elif capacity is None:
            capacity = parse_capacity_gb(line)

    model = model or family
    if not model or not serial or not capacity or capacity <= 0:
        logger.debug(
            f"Incomplete identity for {path}: model={model!r}, "
            f"serial={serial!r}, capacity={capacity!r}"
        )
        return None

    return DeviceInfo(path=path, model=model, serial=serial, capacity_gb=capacity)


def parse_data_units_written(output: str) -> Optional[int]:
    """Return the raw 'Data Units Written' counter from ``smartctl -A`` output."""
    for line in output.splitlines():
        if DATA_UNITS_WRITTEN_LABEL in line and ":" in line:
            fields = _label_value(line).split()
            if not fields:
                return None
            try:
                return int(fields[0].replace(",", "").replace(".", ""))
            except ValueError:
                logger.debug(f"Unparseable data units line: {line!r}")
                return None
    return None


def parse_scan_output(output: str) -> List[str]:
    """Return the device paths listed by ``smartctl --scan``."""
    paths = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        paths.append(line.split()[0])
    return paths


def _is_fatal(result: CommandResult) -> bool:
    return result.exit_code < 0 or bool(result.exit_code & FATAL_EXIT_BITS)


class SmartctlProber:
    """Reads drive identity and write counters through smartctl."""

    def __init__(
        self,
        smartctl_path: str = "smartctl",
        command_timeout: float = 30.0,
        scale_factor: float = DEFAULT_SCALE_FACTOR
    ):
        """Initialize the prober.

        Args:
            smartctl_path: smartctl executable name or path
            command_timeout: Upper bound in seconds for each smartctl call
            scale_factor: Unit scaling factor passed to the TBW conversion
        """
        self.smartctl_path = smartctl_path
        self.command_timeout = command_timeout
        self.scale_factor = scale_factor

    def _smartctl(self, *args: str) -> CommandResult:
        return run_command(
            [self.smartctl_path, *args],
            check=False,
            timeout=self.command_timeout
        )

    def scan(self) -> List[str]:
        """List device paths. An unusable scan yields an empty list."""
        result = self._smartctl("--scan")
        if _is_fatal(result):
            logger.error(f"smartctl --scan failed (exit code {result.exit_code}): {result.stderr.strip()}")
            return []
        return parse_scan_output(result.stdout)

    def device_info(self, path: str) -> Optional[DeviceInfo]:
        """Probe the identity of one device path."""
        result = self._smartctl("-i", path)
        if _is_fatal(result):
            logger.warning(f"smartctl -i {path} failed with exit code {result.exit_code}")
            return None
        return parse_device_info(path, result.stdout)

    def enumerate(self) -> List[DeviceInfo]:
        """Detect every drive with a complete identity and capacity."""
        logger.debug("Starting drive detection using smartctl")
        detected: List[DeviceInfo] = []

        for path in self.scan():
            try:
                info = self.device_info(path)
            except Exception as e:
                logger.error(f"Error retrieving information for device {path}: {e}")
                continue

            if info is not None:
                logger.info(f"Detected drive: model={info.model}, serial={info.serial}, path={path}")
                detected.append(info)

        logger.info(f"Detected {len(detected)} drives in total")
        return detected

    def find_device(self, model_key: str, serial: Optional[str] = None) -> Optional[DeviceInfo]:
        """Find the attached device whose model matches ``model_key``, ignoring case."""
        for info in self.enumerate():
            if info.model.lower() != model_key.lower():
                continue
            if serial is not None and info.serial != serial:
                continue
            return info
        return None

    def read_cumulative_writes(self, model_key: str, serial: Optional[str] = None) -> ProbeResult:
        """Read the TBW of a drive in GB, or Unavailable if it cannot be read."""
        try:
            info = self.find_device(model_key, serial)
            if info is None:
                logger.warning(f"No device found with model: {model_key}")
                return Unavailable(f"no device found with model {model_key}")

            result = self._smartctl("-A", info.path)
            if result.exit_code != 0:
                logger.error(f"smartctl -A failed with exit code {result.exit_code} for device {info.path}")
                return Unavailable(f"smartctl exit code {result.exit_code}")

            data_units = parse_data_units_written(result.stdout)
            if data_units is None:
                logger.warning(f"No '{DATA_UNITS_WRITTEN_LABEL}' counter for {info.path}")
                return Unavailable("write counter not reported")

            tbw_gb = data_units_to_gb(data_units, scale_factor=self.scale_factor)
            logger.info(f"Retrieved TBW value of {tbw_gb}GB for model {model_key}")
            return tbw_gb
        except Exception as e:
            logger.error(f"Error executing smartctl for model {model_key}: {e}")
            return Unavailable(str(e))
