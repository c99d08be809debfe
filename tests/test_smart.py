"""
Tests for smartctl output parsing and the SMART prober.
"""

from unittest.mock import patch

import pytest

from tbwmon.storage.smart import (
    DeviceInfo,
    SmartctlProber,
    Unavailable,
    data_units_to_gb,
    parse_capacity_gb,
    parse_data_units_written,
    parse_device_info,
    parse_scan_output,
)
from tbwmon.utils.command import LAUNCH_FAILED, CommandResult

SCAN_OUTPUT = """\
/dev/sda -d sat # /dev/sda [SAT], ATA device
/dev/nvme0 -d nvme # /dev/nvme0, NVMe device

# trailing comment
"""

NVME_INFO = """\
smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)
=== START OF INFORMATION SECTION ===
Model Number:                       Samsung SSD 980 PRO 1TB
Serial Number:                      S5GXNF0R100001
Firmware Version:                   5B2QGXA7
Total NVM Capacity:                 1,000,204,886,016 [1.00 TB]
Namespace 1 Size/Capacity:          1,000,204,886,016 [1.00 TB]
"""

SATA_INFO = """\
=== START OF INFORMATION SECTION ===
Model Family:     Crucial/Micron Client SSDs
Device Model:     CT500MX500SSD1
Serial Number:    2039E4C00003
User Capacity:    500,107,862,016 bytes [500 GB]
Sector Size:      512 bytes logical/physical
"""

NVME_ATTRIBUTES = """\
=== START OF SMART DATA SECTION ===
SMART/Health Information (NVMe Log 0x02)
Critical Warning:                   0x00
Data Units Read:                    1,234,567 [632 GB]
Data Units Written:                 2,000,000 [1.02 TB]
Host Read Commands:                 12,345,678
"""


def fake_smartctl(outputs, exit_codes=None):
    """Build a run_command replacement answering from canned outputs."""
    exit_codes = exit_codes or {}

    def _run(cmd, check=True, timeout=None):
        key = " ".join(cmd[1:])
        return CommandResult(exit_codes.get(key, 0), outputs.get(key, ""), "")

    return _run


class TestConversion:
    """Tests for converting data units to GB."""

    def test_two_million_units(self):
        assert data_units_to_gb(2_000_000) == 954

    def test_zero_units(self):
        assert data_units_to_gb(0) == 0

    def test_custom_scale_factor(self):
        assert data_units_to_gb(1_000_000, scale_factor=1000) == 512


class TestParsing:
    """Tests for the smartctl text parsers."""

    def test_capacity_in_gb(self):
        assert parse_capacity_gb("User Capacity:    500,107,862,016 bytes [500 GB]") == 500

    def test_capacity_in_tb(self):
        assert parse_capacity_gb("Namespace 1 Size/Capacity: 1,000,204,886,016 [1.00 TB]") == 1024

    def test_unrelated_line(self):
        assert parse_capacity_gb("Sector Size: 512 bytes logical/physical") is None

    def test_nvme_identity(self):
        info = parse_device_info("/dev/nvme0", NVME_INFO)
        assert info == DeviceInfo(
            path="/dev/nvme0",
            model="Samsung SSD 980 PRO 1TB",
            serial="S5GXNF0R100001",
            capacity_gb=1024
        )

    def test_device_model_preferred_over_family(self):
        info = parse_device_info("/dev/sda", SATA_INFO)
        assert info.model == "CT500MX500SSD1"
        assert info.capacity_gb == 500

    def test_family_used_when_no_model(self):
        output = SATA_INFO.replace("Device Model:     CT500MX500SSD1\n", "")
        info = parse_device_info("/dev/sda", output)
        assert info.model == "Crucial/Micron Client SSDs"

    def test_missing_serial_is_rejected(self):
        output = NVME_INFO.replace("Serial Number:                      S5GXNF0R100001\n", "")
        assert parse_device_info("/dev/nvme0", output) is None

    def test_missing_capacity_is_rejected(self):
        output = "Model Number: Foo\nSerial Number: 123\n"
        assert parse_device_info("/dev/nvme0", output) is None

    def test_data_units_written(self):
        assert parse_data_units_written(NVME_ATTRIBUTES) == 2_000_000

    def test_data_units_missing(self):
        assert parse_data_units_written("Critical Warning: 0x00\n") is None

    def test_scan_output(self):
        assert parse_scan_output(SCAN_OUTPUT) == ["/dev/sda", "/dev/nvme0"]


class TestSmartctlProber:
    """Tests for SmartctlProber with smartctl replaced by canned output."""

    @pytest.fixture
    def outputs(self):
        return {
            "--scan": SCAN_OUTPUT,
            "-i /dev/sda": SATA_INFO,
            "-i /dev/nvme0": NVME_INFO,
            "-A /dev/nvme0": NVME_ATTRIBUTES,
        }

    def test_enumerate(self, outputs):
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            devices = SmartctlProber().enumerate()

        assert [d.path for d in devices] == ["/dev/sda", "/dev/nvme0"]

    def test_enumerate_skips_incomplete_devices(self, outputs):
        outputs["-i /dev/sda"] = "Device Model: CT500MX500SSD1\n"
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            devices = SmartctlProber().enumerate()

        assert [d.path for d in devices] == ["/dev/nvme0"]

    def test_enumerate_with_failed_scan(self, outputs):
        run = fake_smartctl(outputs, exit_codes={"--scan": 1})
        with patch("tbwmon.storage.smart.run_command", side_effect=run):
            assert SmartctlProber().enumerate() == []

    def test_read_cumulative_writes(self, outputs):
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            assert SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB") == 954

    def test_model_match_ignores_case(self, outputs):
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            assert SmartctlProber().read_cumulative_writes("samsung ssd 980 pro 1tb") == 954

    def test_serial_must_match_when_given(self, outputs):
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            result = SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB", serial="OTHER")

        assert isinstance(result, Unavailable)

    def test_unknown_model(self, outputs):
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            result = SmartctlProber().read_cumulative_writes("No Such Drive")

        assert isinstance(result, Unavailable)
        assert not result

    def test_fatal_exit_code(self, outputs):
        run = fake_smartctl(outputs, exit_codes={"-A /dev/nvme0": 2})
        with patch("tbwmon.storage.smart.run_command", side_effect=run):
            result = SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB")

        assert result == Unavailable("smartctl exit code 2")

    def test_any_nonzero_exit_on_counter_read(self, outputs):
        run = fake_smartctl(outputs, exit_codes={"-A /dev/nvme0": 64})
        with patch("tbwmon.storage.smart.run_command", side_effect=run):
            result = SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB")

        assert result == Unavailable("smartctl exit code 64")

    def test_enumerate_tolerates_status_bits(self, outputs):
        # Bit 6 only reports entries in the device error log
        run = fake_smartctl(outputs, exit_codes={"-i /dev/sda": 64})
        with patch("tbwmon.storage.smart.run_command", side_effect=run):
            devices = SmartctlProber().enumerate()

        assert [d.path for d in devices] == ["/dev/sda", "/dev/nvme0"]

    def test_launch_failure(self, outputs):
        run = fake_smartctl(outputs, exit_codes={"-A /dev/nvme0": LAUNCH_FAILED})
        with patch("tbwmon.storage.smart.run_command", side_effect=run):
            result = SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB")

        assert isinstance(result, Unavailable)

    def test_missing_counter(self, outputs):
        outputs["-A /dev/nvme0"] = "Critical Warning: 0x00\n"
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)):
            result = SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB")

        assert result == Unavailable("write counter not reported")

    def test_unexpected_error_becomes_unavailable(self):
        with patch("tbwmon.storage.smart.run_command", side_effect=RuntimeError("boom")):
            result = SmartctlProber().read_cumulative_writes("Samsung SSD 980 PRO 1TB")

        assert result == Unavailable("boom")

    def test_commands_are_bounded(self, outputs):
        with patch("tbwmon.storage.smart.run_command", side_effect=fake_smartctl(outputs)) as run:
            SmartctlProber(smartctl_path="/usr/sbin/smartctl", command_timeout=7).scan()

        run.assert_called_once_with(["/usr/sbin/smartctl", "--scan"], check=False, timeout=7)
