from pydantic import BaseModel
from typing import List, Optional

# --- Incoming Request Models ---

class BookingRequest(BaseModel):
    # Plain strings: emptiness and format are checked by BookingService
    # so every field problem is reported as one InvalidInput.
    date: Optional[str] = None   # 'YYYY-MM-DD'
    time: Optional[str] = None   # '12:30 PM', '4:30 PM' or '8:30 PM'
    name: Optional[str] = None
    phone: Optional[str] = None

class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None

# --- Outgoing Response Models ---

class Availability(BaseModel):
    date: str
    allTimeSlots: List[str]
    availableTimeSlots: List[str]
    bookedTimeSlots: List[str]
    isFullyBooked: bool

class BookingCreatedResponse(BaseModel):
    status: str = "success"
    message: str = "Booking created successfully"
    bookingId: str

class SuccessResponse(BaseModel):
    success: bool = True

class PurgeResponse(BaseModel):
    deleted: int

class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
