from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_booking_service
from app.core.security import require_admin
from app.models.api_models import (
    BookingCreatedResponse,
    BookingRequest,
    ErrorResponse,
    PurgeResponse,
    StatusUpdateRequest,
    SuccessResponse,
)
from app.models.db_models import Booking
from app.services.booking_service import BookingService

router = APIRouter()

@router.post(
    "/bookings",
    response_model=BookingCreatedResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_booking(req: BookingRequest, service: BookingService = Depends(get_booking_service)):
    booking = await service.create_booking(req.date, req.time, req.name, req.phone)
    return BookingCreatedResponse(bookingId=booking.id)

@router.get("/bookings", response_model=List[Booking], dependencies=[Depends(require_admin)])
async def list_bookings(
    week_of: Optional[str] = Query(None, description="YYYY-MM-DD, limits results to that Monday-start week"),
    service: BookingService = Depends(get_booking_service),
):
    return await service.list_bookings(week_of)

# Declared before /bookings/{booking_id} so the literal path wins
@router.post("/bookings/purge-expired", response_model=PurgeResponse, dependencies=[Depends(require_admin)])
async def purge_expired(service: BookingService = Depends(get_booking_service)):
    return PurgeResponse(deleted=await service.purge_expired())

@router.get("/bookings/{booking_id}", response_model=Booking, dependencies=[Depends(require_admin)])
async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    return await service.get_booking(booking_id)

@router.put("/bookings/{booking_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def update_booking(
    booking_id: str,
    req: StatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    await service.update_status(booking_id, req.status)
    return SuccessResponse()

@router.delete("/bookings/{booking_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def delete_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    await service.delete_booking(booking_id)
    return SuccessResponse()
