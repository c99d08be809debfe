"""Response models for the tbwmon API."""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class DeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model: str
    serial: str
    capacity_gb: int
    registered_at: dt.datetime
    monitored: bool


class DetectedDevice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    path: str
    model: str
    serial: str
    capacity_gb: int


class ReconcileResponse(BaseModel):
    registered: List[DeviceResponse]
    reenabled: List[DeviceResponse]
    unchanged: List[DeviceResponse]


class TbwReading(BaseModel):
    device_id: int
    tbw_gb: int


class SampleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: int
    date: dt.date
    time: Optional[dt.time] = None
    tbw_gb: int


class RegistrationResponse(BaseModel):
    registered: bool


class MessageResponse(BaseModel):
    message: str
