"""Reservation models."""

from app.models.booking.reservation import Reservation, ReservationRoom

__all__ = ["Reservation", "ReservationRoom"]
