"""
Drive API routes.

Endpoints to list registered drives, detect attached drives, register them
and toggle their monitoring flag.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...service import TbwService
from ...storage.smart import Unavailable
from ..dependencies import get_service
from ..schemas import DetectedDevice, DeviceResponse, ReconcileResponse, TbwReading

router = APIRouter()


@router.get("", response_model=List[DeviceResponse])
def list_devices(
    monitored: Optional[bool] = Query(None, description="Only drives with this monitoring flag"),
    service: TbwService = Depends(get_service)
):
    """List registered drives."""
    return service.registry.list_devices(monitored=monitored)


@router.get("/detected", response_model=List[DetectedDevice])
def detect_devices(service: TbwService = Depends(get_service)):
    """Probe attached drives without registering them."""
    return service.prober.enumerate()


@router.post("/detect", response_model=ReconcileResponse)
def detect_and_register(service: TbwService = Depends(get_service)):
    """Detect attached drives and register the new ones, unmonitored."""
    summary = service.registry.detect_and_register(monitor_new_by_default=False)
    return ReconcileResponse.model_validate(summary, from_attributes=True)


@router.patch("/{device_id}/monitor", response_model=DeviceResponse)
def toggle_monitoring(
    device_id: int,
    monitor: bool = Query(..., description="Whether the drive should be monitored"),
    service: TbwService = Depends(get_service)
):
    """Enable or disable monitoring for a drive."""
    return service.registry.set_monitoring(device_id, monitor)


@router.get("/{device_id}/tbw", response_model=TbwReading)
def current_tbw(device_id: int, service: TbwService = Depends(get_service)):
    """Read the current TBW of a drive directly from the hardware."""
    device = service.history_db.get_device(device_id)
    if device is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Device {device_id} not found")

    reading = service.prober.read_cumulative_writes(device.model, device.serial)
    if isinstance(reading, Unavailable):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Device {device_id} is unavailable: {reading.reason}"
        )
    return TbwReading(device_id=device_id, tbw_gb=reading)
