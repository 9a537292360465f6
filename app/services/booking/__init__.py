"""
Booking commit path.
"""

from app.services.booking.reservation_service import ReservationService

__all__ = ["ReservationService"]
