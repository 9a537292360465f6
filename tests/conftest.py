"""
Shared pytest fixtures: an in-memory database, pinned time and randomness,
seed helpers and an API client wired to the same session.
"""

from datetime import date, datetime, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.config.settings import Settings
from app.core.clock import FixedClock
from app.db.init_db import drop_db, init_db
from app.models.base.enums import ReservationStatus
from app.models.booking import Reservation, ReservationRoom
from app.models.room import Room, RoomType
from app.repositories.pricing import CompetitorRateRepository
from app.schemas.pricing import CompetitorQuote
from app.services.booking import ReservationService
from app.services.forecast import DemandForecaster
from app.services.inventory import AvailabilityService, InventoryMutator, InventoryQueryService
from app.services.pricing import CompetitorRateService, DynamicPricingEngine, PricingRuleService

HOTEL_ID = "hotel-1"
NOW = datetime(2025, 2, 20, 12, 0, tzinfo=timezone.utc)


class ZeroRandom:
    """Retry jitter pinned to zero."""

    def random(self) -> float:
        return 0.0


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def rng():
    return ZeroRandom()


@pytest.fixture
def settings():
    return Settings(
        MUTATION_RETRY_BACKOFF_SECONDS=0,
        STALE_INVENTORY_TOLERANCE=0,
        ALLOWED_OVERSELL=0,
        FIXED_CLOCK=None,
    )


@pytest.fixture
def mutator(db, clock, rng, settings):
    return InventoryMutator(db, clock=clock, rng=rng, config=settings)


@pytest.fixture
def availability(db, clock, settings):
    return AvailabilityService(db, clock=clock, config=settings)


@pytest.fixture
def query_service(db, settings):
    return InventoryQueryService(db, config=settings)


@pytest.fixture
def reservations(db, clock, rng, settings, mutator, availability):
    return ReservationService(
        db, clock=clock, rng=rng, config=settings, mutator=mutator, availability=availability
    )


@pytest.fixture
def pricing_engine(db, clock, settings):
    return DynamicPricingEngine(db, clock=clock, config=settings)


@pytest.fixture
def rule_service(db, clock, settings):
    return PricingRuleService(db, clock=clock, config=settings)


@pytest.fixture
def competitor_service(db, clock, rng, settings):
    return CompetitorRateService(db, clock=clock, rng=rng, config=settings)


@pytest.fixture
def forecaster(db, clock, settings):
    return DemandForecaster(db, clock=clock, config=settings)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

_refs = count(1)


@pytest.fixture
def seed_room_type(db):
    def seed(
        code: str = "SGL",
        base_rate: int = 5000,
        rooms: int = 3,
        hotel_id: str = HOTEL_ID,
        is_active: bool = True,
        first_number: int = 101,
        max_occupancy: int = 2,
    ) -> RoomType:
        room_type = RoomType(
            hotel_id=hotel_id,
            code=code,
            name=f"{code} room",
            base_rate=base_rate,
            currency="INR",
            max_occupancy=max_occupancy,
            is_active=is_active,
        )
        db.add(room_type)
        db.flush()
        for offset in range(rooms):
            db.add(Room(
                hotel_id=hotel_id,
                number=str(first_number + offset),
                room_type_id=room_type.id,
                floor="1",
                is_active=True,
            ))
        db.commit()
        return room_type

    return seed


@pytest.fixture
def seed_reservation(db):
    def seed(
        room_type: RoomType,
        check_in: date,
        check_out: date,
        rooms: int = 1,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        booked_at: datetime = NOW,
        assign=(),
        ref: str = None,
    ) -> Reservation:
        reservation = Reservation(
            reservation_ref=ref or f"RES-{next(_refs):05d}",
            hotel_id=room_type.hotel_id,
            room_type_id=room_type.id,
            check_in=check_in,
            check_out=check_out,
            status=status,
            rooms_count=rooms,
            source="direct",
            booked_at=booked_at,
        )
        reservation.rooms = [ReservationRoom(room_id=room.id) for room in assign]
        db.add(reservation)
        db.commit()
        return reservation

    return seed


@pytest.fixture
def seed_competitor_rates(db):
    def seed(hotel_id: str, day: date, *rates: int) -> None:
        for index, rate in enumerate(rates):
            CompetitorRateRepository(db).upsert_sheet(
                hotel_id,
                f"comp-{index}",
                f"Competitor {index}",
                True,
                [CompetitorQuote(date=day, rate=rate)],
                updated_at=NOW,
                default_currency="INR",
            )
        db.commit()

    return seed


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
def client(db, clock):
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_clock] = lambda: clock
    app.dependency_overrides[deps.get_random] = lambda: ZeroRandom()
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
