from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.schemas.availability import AvailabilityResult
from app.services.inventory import AvailabilityService

router = APIRouter(prefix="/availability", tags=["Availability"])


@router.get("", response_model=AvailabilityResult)
def check_availability(
    hotel_id: str = Query(..., alias="hotelId"),
    room_type_id: str = Query(..., alias="roomTypeId"),
    check_in: date = Query(..., alias="checkIn"),
    check_out: date = Query(..., alias="checkOut"),
    rooms_requested: int = Query(default=1, ge=1, alias="roomsRequested"),
    channel: Optional[str] = Query(default=None),
    service: AvailabilityService = Depends(deps.get_availability_service),
):
    """A refusal is a normal answer: ``available`` is false and ``reason`` says why."""
    return service.check(hotel_id, room_type_id, check_in, check_out, rooms_requested=rooms_requested, channel=channel)
