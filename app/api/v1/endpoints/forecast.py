from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.schemas.forecast import DemandForecastEntry
from app.services.forecast import DemandForecaster

router = APIRouter(prefix="/forecast", tags=["Forecast"])


@router.post("", response_model=List[DemandForecastEntry])
def generate_forecast(
    start_date: date = Query(..., alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    room_type_id: Optional[str] = Query(default=None, alias="roomTypeId"),
    hotel_id: Optional[str] = Query(default=None, alias="hotelId"),
    forecaster: DemandForecaster = Depends(deps.get_demand_forecaster),
):
    """Forecast one room type, or every active room type of a hotel."""
    return forecaster.generate(start_date, end_date, room_type_id=room_type_id, hotel_id=hotel_id)
