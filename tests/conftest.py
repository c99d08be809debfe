import time
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from tbwmon.storage.history import TbwHistoryDB
from tbwmon.storage.models import Device, Sample
from tbwmon.storage.recorder import SampleRecorder
from tbwmon.storage.registry import DeviceRegistry
from tbwmon.storage.smart import DeviceInfo
from tests.mocks.hardware import MockProber

TODAY = date(2024, 6, 15)


@pytest.fixture
def history_db(tmp_path):
    db = TbwHistoryDB(f"sqlite:///{tmp_path / 'tbw_history.db'}")
    yield db
    db.dispose()


@pytest.fixture
def mock_devices():
    return [
        DeviceInfo(path="/dev/nvme0", model="Samsung SSD 980 PRO 1TB", serial="S5GXNF0R100001", capacity_gb=1024),
        DeviceInfo(path="/dev/nvme1", model="WD Blue SN570 500GB", serial="22101A800002", capacity_gb=500),
        DeviceInfo(path="/dev/sda", model="Crucial MX500", serial="2039E4C00003", capacity_gb=500),
    ]


@pytest.fixture
def prober(mock_devices):
    return MockProber(devices=mock_devices)


@pytest.fixture
def registry(history_db, prober):
    return DeviceRegistry(history_db, prober, clock=lambda: datetime(2024, 6, 1, 9, 0))


@pytest.fixture
def recorder(history_db, prober, registry):
    return SampleRecorder(history_db, prober, registry)


@pytest.fixture
def add_device(history_db):
    def _add(model="Samsung SSD 980 PRO 1TB", serial="S5GXNF0R100001", monitored=True, capacity_gb=1024):
        return history_db.save_device(Device(
            model=model,
            serial=serial,
            capacity_gb=capacity_gb,
            registered_at=datetime(2024, 6, 1, 9, 0),
            monitored=monitored
        ))
    return _add


@pytest.fixture
def add_sample(history_db):
    def _add(device, sample_date=TODAY, tbw_gb=1500):
        return history_db.save_sample(Sample(device_id=device.id, date=sample_date, tbw_gb=tbw_gb))
    return _add


@pytest.fixture
def new_york_tz(monkeypatch):
    """Run the test with the process local time zone set to America/New_York."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available")
    try:
        ZoneInfo("America/New_York")
    except ZoneInfoNotFoundError:
        pytest.skip("tz database not available")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
