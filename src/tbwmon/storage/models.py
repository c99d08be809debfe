"""Database models for drives and their daily TBW samples."""

import datetime as dt
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Device(Base):
    """A physical drive, identified by its (model, serial) pair."""

    __tablename__ = "devices"
    __table_args__ = (UniqueConstraint("model", "serial", name="uq_device_model_serial"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    serial: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity_gb: Mapped[int] = mapped_column(Integer, nullable=False)
    registered_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)
    monitored: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert device to dictionary."""
        return {
            "id": self.id,
            "model": self.model,
            "serial": self.serial,
            "capacity_gb": self.capacity_gb,
            "registered_at": self.registered_at.isoformat(),
            "monitored": self.monitored
        }

    def __repr__(self) -> str:
        return f"Device(id={self.id!r}, model={self.model!r}, serial={self.serial!r})"


class Sample(Base):
    """One TBW observation; at most one per device and calendar day."""

    __tablename__ = "tbw_samples"
    __table_args__ = (UniqueConstraint("device_id", "date", name="uq_sample_device_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    device_id: Mapped[int] = mapped_column(ForeignKey("devices.id"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[Optional[dt.time]] = mapped_column(Time, nullable=True)
    tbw_gb: Mapped[int] = mapped_column(Integer, nullable=False)

    device: Mapped[Device] = relationship(lazy="joined")

    def to_dict(self) -> Dict[str, Any]:
        """Convert sample to dictionary."""
        return {
            "id": self.id,
            "device_id": self.device_id,
            "date": self.date.isoformat(),
            "time": self.time.isoformat() if self.time else None,
            "tbw_gb": self.tbw_gb
        }

    def __repr__(self) -> str:
        return f"Sample(device_id={self.device_id!r}, date={self.date!r}, tbw_gb={self.tbw_gb!r})"
