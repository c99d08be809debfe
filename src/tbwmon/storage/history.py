"""
TBW history storage module.

``TbwHistoryDB`` is the durable store behind the registry and the recorder. It
holds the catalog of known drives and the table of daily TBW samples, and
enforces the one-sample-per-device-per-day invariant with a unique constraint
in addition to the recorder's check-then-act.
"""

import logging
import os
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.exceptions import DuplicateSampleError, PersistenceError
from .models import Base, Device, Sample

logger = logging.getLogger(__name__)


def _create_engine(url: str) -> Engine:
    parsed = make_url(url)
    connect_args = {}
    if parsed.get_backend_name() == "sqlite":
        # Scheduler threads and API worker threads share the engine
        connect_args["check_same_thread"] = False
        if parsed.database and parsed.database != ":memory:":
            directory = os.path.dirname(os.path.abspath(os.path.expanduser(parsed.database)))
            os.makedirs(directory, exist_ok=True)
    return create_engine(url, connect_args=connect_args)


class TbwHistoryDB:
    """Drive catalog and daily TBW sample table."""

    def __init__(self, url: str = "sqlite:///tbw_history.db"):
        """Initialize database.

        Args:
            url: SQLAlchemy database URL
        """
        self.url = url
        self.engine = _create_engine(url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database tables."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not initialize database: {e}", operation="create_all") from e

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        """Open a session that commits on success and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise PersistenceError(str(e), operation=operation) from e
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()

    # Devices

    def find_device(self, model: str, serial: str) -> Optional[Device]:
        with self._transaction("find_device") as session:
            return session.scalars(
                select(Device).where(Device.model == model, Device.serial == serial)
            ).first()

    def get_device(self, device_id: int) -> Optional[Device]:
        with self._transaction("get_device") as session:
            return session.get(Device, device_id)

    def list_devices(self) -> List[Device]:
        with self._transaction("list_devices") as session:
            return list(session.scalars(select(Device).order_by(Device.id)))

    def list_monitored_devices(self) -> List[Device]:
        with self._transaction("list_monitored_devices") as session:
            return list(session.scalars(
                select(Device).where(Device.monitored.is_(True)).order_by(Device.id)
            ))

    def save_device(self, device: Device) -> Device:
        """Insert or update a device and return the persisted instance."""
        try:
            with self._transaction("save_device") as session:
                merged = session.merge(device)
                session.flush()
                return merged
        except IntegrityError as e:
            raise PersistenceError(
                f"Device {device.model} ({device.serial}) is already registered",
                operation="save_device"
            ) from e

    def set_monitored(self, model: str, monitored: bool, serial: Optional[str] = None) -> int:
        """Set the monitored flag for devices matching ``model`` (and ``serial``).

        Runs in its own transaction. Returns the number of devices changed.
        """
        with self._transaction("set_monitored") as session:
            stmt = update(Device).where(func.lower(Device.model) == model.lower())
            if serial is not None:
                stmt = stmt.where(Device.serial == serial)
            result = session.execute(stmt.values(monitored=monitored))
            return result.rowcount

    # Samples

    def find_sample(self, device_id: int, sample_date: date) -> Optional[Sample]:
        with self._transaction("find_sample") as session:
            return session.scalars(
                select(Sample).where(Sample.device_id == device_id, Sample.date == sample_date)
            ).first()

    def save_sample(self, sample: Sample) -> Sample:
        """Insert or update a sample.

        Raises:
            DuplicateSampleError: If a new sample collides with an existing
                sample for the same device and date
        """
        try:
            with self._transaction("save_sample") as session:
                merged = session.merge(sample)
                session.flush()
                return merged
        except IntegrityError as e:
            raise DuplicateSampleError(sample.device_id, sample.date) from e

    def list_samples(self, device_id: Optional[int] = None) -> List[Sample]:
        with self._transaction("list_samples") as session:
            stmt = select(Sample).order_by(Sample.date, Sample.device_id)
            if device_id is not None:
                stmt = stmt.where(Sample.device_id == device_id)
            return list(session.scalars(stmt).unique())

    def list_samples_after(self, sample_date: date) -> List[Sample]:
        """Get samples dated strictly after ``sample_date``."""
        with self._transaction("list_samples_after") as session:
            return list(session.scalars(
                select(Sample).where(Sample.date > sample_date).order_by(Sample.date)
            ).unique())

    def delete_samples(self, samples: Sequence[Sample]) -> int:
        ids = [sample.id for sample in samples]
        if not ids:
            return 0
        with self._transaction("delete_samples") as session:
            result = session.execute(delete(Sample).where(Sample.id.in_(ids)))
            return result.rowcount

    def most_recent_sample_date(self) -> Optional[date]:
        with self._transaction("most_recent_sample_date") as session:
            return session.scalar(select(func.max(Sample.date)))

    def has_samples_on(self, sample_date: date) -> bool:
        """Check whether any device has a sample for ``sample_date``."""
        with self._transaction("has_samples_on") as session:
            return session.scalar(
                select(func.count(Sample.id)).where(Sample.date == sample_date)
            ) > 0
