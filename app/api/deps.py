from fastapi import Depends, Request

from app.services.booking_service import BookingService
from app.services.db_service import BookingStore


def get_store(request: Request) -> BookingStore:
    """The store built once in the app lifespan."""
    return request.app.state.store


def get_booking_service(store: BookingStore = Depends(get_store)) -> BookingService:
    return BookingService(store)
