from app.repositories.booking.reservation_repository import ReservationRepository

__all__ = ["ReservationRepository"]
