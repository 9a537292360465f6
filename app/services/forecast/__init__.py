"""
Demand forecasting.
"""

from app.services.forecast.demand_forecaster import DemandForecaster

__all__ = ["DemandForecaster"]
