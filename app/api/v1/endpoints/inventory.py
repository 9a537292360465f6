"""
Inventory endpoints: reads, edits, stop-sell, range creation and the
reservation commit path.
"""

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api import deps
from app.schemas.booking import ReleaseRequest, ReservationCommitResponse, ReserveRequest
from app.schemas.inventory import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    CreateRangeRequest,
    CreateRangeResponse,
    InventoryChanges,
    InventoryDaySnapshot,
    InventorySummary,
    InventoryUpdateRequest,
    StopSellRequest,
    StopSellResponse,
)
from app.services.booking import ReservationService
from app.services.inventory import InventoryMutator, InventoryQueryService
from app.services.inventory.effective_view import channel_view

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("", response_model=List[InventoryDaySnapshot])
def get_inventory(
    hotel_id: str = Query(..., alias="hotelId"),
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    room_type: Optional[str] = Query(default=None, alias="roomType"),
    channel: Optional[str] = Query(default=None),
    service: InventoryQueryService = Depends(deps.get_inventory_query_service),
):
    return service.get_range(hotel_id, start_date, end_date, room_type_id=room_type, channel=channel)


@router.put("", response_model=InventoryDaySnapshot)
def update_inventory(
    payload: InventoryUpdateRequest,
    actor: str = Depends(deps.get_actor),
    mutator: InventoryMutator = Depends(deps.get_inventory_mutator),
):
    day = mutator.update_day(
        payload.hotel_id,
        payload.room_type,
        payload.date,
        InventoryChanges.from_request(payload),
        actor=actor,
        channel=payload.channel,
    )
    snapshot = InventoryDaySnapshot.from_day(day)
    if payload.channel:
        snapshot.channel_view = channel_view(day, payload.channel)
    return snapshot


@router.post("/bulk", response_model=BulkUpdateResponse)
def bulk_update_inventory(
    payload: BulkUpdateRequest,
    actor: str = Depends(deps.get_actor),
    mutator: InventoryMutator = Depends(deps.get_inventory_mutator),
):
    return mutator.bulk_update(payload.hotel_id, payload.room_type, payload.updates, actor=actor, channel=payload.channel)


@router.post("/stop-sell", response_model=StopSellResponse)
def set_stop_sell(
    payload: StopSellRequest,
    actor: str = Depends(deps.get_actor),
    mutator: InventoryMutator = Depends(deps.get_inventory_mutator),
):
    return mutator.set_stop_sell(
        payload.hotel_id,
        payload.room_type,
        payload.start_date,
        payload.end_date,
        payload.stop_sell,
        actor=actor,
        channel=payload.channel,
        reason=payload.reason,
    )


@router.post("/range", response_model=CreateRangeResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_range(
    payload: CreateRangeRequest,
    actor: str = Depends(deps.get_actor),
    mutator: InventoryMutator = Depends(deps.get_inventory_mutator),
):
    return mutator.create_range(
        payload.hotel_id,
        payload.room_type,
        payload.start_date,
        payload.end_date,
        actor=actor,
        base_rate=payload.base_rate,
        mode=payload.create_mode,
    )


@router.get("/calendar", response_model=Dict[str, Dict[str, InventoryDaySnapshot]])
def get_inventory_calendar(
    hotel_id: str = Query(..., alias="hotelId"),
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    room_type: Optional[str] = Query(default=None, alias="roomType"),
    service: InventoryQueryService = Depends(deps.get_inventory_query_service),
):
    return service.calendar(hotel_id, year, month, room_type_id=room_type)


@router.get("/summary", response_model=InventorySummary)
def get_inventory_summary(
    hotel_id: str = Query(..., alias="hotelId"),
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    room_type: Optional[str] = Query(default=None, alias="roomType"),
    service: InventoryQueryService = Depends(deps.get_inventory_query_service),
):
    return service.summary(hotel_id, start_date, end_date, room_type_id=room_type)


@router.post("/reserve", response_model=ReservationCommitResponse)
def reserve_rooms(
    payload: ReserveRequest,
    actor: str = Depends(deps.get_actor),
    service: ReservationService = Depends(deps.get_reservation_service),
):
    return service.reserve(
        payload.hotel_id,
        payload.room_type_id,
        payload.check_in,
        payload.check_out,
        payload.rooms,
        payload.reservation_ref,
        actor=actor,
        source=payload.source,
        channel=payload.channel,
    )


@router.post("/release", response_model=ReservationCommitResponse)
def release_rooms(
    payload: ReleaseRequest,
    actor: str = Depends(deps.get_actor),
    service: ReservationService = Depends(deps.get_reservation_service),
):
    return service.release(
        payload.hotel_id,
        payload.room_type_id,
        payload.check_in,
        payload.check_out,
        payload.rooms,
        payload.reservation_ref,
        actor=actor,
        source=payload.source,
    )
