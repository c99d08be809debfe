"""TBW sample API routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...service import TbwService
from ..dependencies import get_service
from ..schemas import RegistrationResponse, SampleResponse

router = APIRouter()


@router.get("", response_model=List[SampleResponse])
def list_samples(
    device_id: Optional[int] = Query(None, description="Only samples of this drive"),
    service: TbwService = Depends(get_service)
):
    """List recorded TBW samples, oldest first."""
    return service.history_db.list_samples(device_id)


@router.post("/auto", response_model=RegistrationResponse)
def trigger_auto_register(service: TbwService = Depends(get_service)):
    """Attempt today's TBW registration immediately."""
    return RegistrationResponse(registered=service.scheduler.register_now())
