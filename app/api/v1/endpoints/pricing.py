"""
Dynamic rate quotes, pricing rule management and rate-shopping ingestion.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.api import deps
from app.models.base.enums import PricingRuleType
from app.schemas.pricing import (
    CompetitorSheetResult,
    CompetitorSheetUpsert,
    DynamicRateResponse,
    GuestProfile,
    PricingRuleCreate,
    PricingRuleResponse,
    PricingRuleUpdate,
)
from app.services.pricing import CompetitorRateService, DynamicPricingEngine, PricingRuleService

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.get("/dynamic", response_model=DynamicRateResponse)
def get_dynamic_rate(
    room_type_id: str = Query(..., alias="roomTypeId"),
    check_in: date = Query(..., alias="checkIn"),
    check_out: Optional[date] = Query(default=None, alias="checkOut"),
    guest_country: Optional[str] = Query(default=None, alias="guestCountry"),
    guest_state: Optional[str] = Query(default=None, alias="guestState"),
    guest_city: Optional[str] = Query(default=None, alias="guestCity"),
    engine: DynamicPricingEngine = Depends(deps.get_pricing_engine),
):
    guest = None
    if guest_country or guest_state or guest_city:
        guest = GuestProfile(country=guest_country, state=guest_state, city=guest_city)
    return engine.calculate(room_type_id, check_in, check_out, guest_profile=guest)


@router.get("/rules", response_model=List[PricingRuleResponse])
def list_pricing_rules(
    hotel_id: Optional[str] = Query(default=None, alias="hotelId"),
    room_type_id: Optional[str] = Query(default=None, alias="roomTypeId"),
    rule_type: Optional[PricingRuleType] = Query(default=None, alias="type"),
    active_only: bool = Query(default=False, alias="activeOnly"),
    service: PricingRuleService = Depends(deps.get_pricing_rule_service),
):
    rules = service.list_rules(hotel_id, room_type_id, rule_type, active_only)
    return [PricingRuleResponse.model_validate(rule) for rule in rules]


@router.get("/rules/{rule_id}", response_model=PricingRuleResponse)
def get_pricing_rule(
    rule_id: str,
    service: PricingRuleService = Depends(deps.get_pricing_rule_service),
):
    return PricingRuleResponse.model_validate(service.get_rule(rule_id))


@router.post("/rules", response_model=PricingRuleResponse, status_code=status.HTTP_201_CREATED)
def create_pricing_rule(
    payload: PricingRuleCreate = Body(...),
    actor: str = Depends(deps.get_actor),
    service: PricingRuleService = Depends(deps.get_pricing_rule_service),
):
    return PricingRuleResponse.model_validate(service.create_rule(payload, actor=actor))


@router.put("/rules/{rule_id}", response_model=PricingRuleResponse)
def update_pricing_rule(
    rule_id: str,
    payload: PricingRuleUpdate,
    actor: str = Depends(deps.get_actor),
    service: PricingRuleService = Depends(deps.get_pricing_rule_service),
):
    return PricingRuleResponse.model_validate(service.update_rule(rule_id, payload, actor=actor))


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pricing_rule(
    rule_id: str,
    actor: str = Depends(deps.get_actor),
    service: PricingRuleService = Depends(deps.get_pricing_rule_service),
):
    service.delete_rule(rule_id, actor=actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/competitor-rates", response_model=List[CompetitorSheetResult])
def store_competitor_rates(
    payload: List[CompetitorSheetUpsert] = Body(...),
    actor: str = Depends(deps.get_actor),
    service: CompetitorRateService = Depends(deps.get_competitor_rate_service),
):
    """Upsert rate-shopping results, one sheet per competitor."""
    return service.store(payload, actor=actor)
