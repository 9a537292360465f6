# app/api/deps.py
"""
FastAPI dependencies: database session, time sources, caller identity and
the services built on top of them.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from app.api import deps

    router = APIRouter()

    @router.get("/availability")
    def check(service = Depends(deps.get_availability_service)):
        ...
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.clock import Clock, RandomSource, SystemRandom, clock_from_settings
from app.core.logging import actor_id
from app.db.session import get_db
from app.services.booking import ReservationService
from app.services.forecast import DemandForecaster
from app.services.inventory import AvailabilityService, InventoryMutator, InventoryQueryService
from app.services.pricing import CompetitorRateService, DynamicPricingEngine, PricingRuleService

DEFAULT_ACTOR = "api"


# --- Time & randomness ---------------------------------------------------------

@lru_cache()
def get_clock() -> Clock:
    return clock_from_settings(get_settings().FIXED_CLOCK)


@lru_cache()
def get_random() -> RandomSource:
    return SystemRandom()


# --- Caller --------------------------------------------------------------------

def get_actor(x_actor: Optional[str] = Header(default=None, alias="X-Actor")) -> str:
    """Caller identity recorded in audit entries; authentication happens upstream."""
    actor = (x_actor or "").strip() or DEFAULT_ACTOR
    actor_id.set(actor)
    return actor


# --- Services ------------------------------------------------------------------

def get_inventory_mutator(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    rng: RandomSource = Depends(get_random),
) -> InventoryMutator:
    return InventoryMutator(db, clock=clock, rng=rng)


def get_inventory_query_service(db: Session = Depends(get_db)) -> InventoryQueryService:
    return InventoryQueryService(db)


def get_availability_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)


def get_reservation_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    rng: RandomSource = Depends(get_random),
) -> ReservationService:
    return ReservationService(db, clock=clock, rng=rng)


def get_pricing_engine(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> DynamicPricingEngine:
    return DynamicPricingEngine(db, clock=clock)


def get_pricing_rule_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PricingRuleService:
    return PricingRuleService(db, clock=clock)


def get_competitor_rate_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    rng: RandomSource = Depends(get_random),
) -> CompetitorRateService:
    return CompetitorRateService(db, clock=clock, rng=rng)


def get_demand_forecaster(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> DemandForecaster:
    return DemandForecaster(db, clock=clock)


__all__ = [
    "get_db",
    "get_clock",
    "get_random",
    "get_actor",
    "get_inventory_mutator",
    "get_inventory_query_service",
    "get_availability_service",
    "get_reservation_service",
    "get_pricing_engine",
    "get_pricing_rule_service",
    "get_demand_forecaster",
]
