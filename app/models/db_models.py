from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.errors import StoreUnavailable
from app.services.slots import DAY_SLOTS

class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class NewBooking(BaseModel):
    """
    A booking as written to the store. Serialized with snake_case column
    names; exposed over the API with the camelCase aliases.
    """
    model_config = ConfigDict(populate_by_name=True)

    date: datetime # UTC midnight of the booked day
    time: str
    customer_name: str = Field(alias="customerName", min_length=1)
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime = Field(alias="createdAt", default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime = Field(alias="expiresAt")

    @field_validator("time")
    @classmethod
    def time_in_catalog(cls, value: str) -> str:
        if value not in DAY_SLOTS:
            raise ValueError(f"unknown time slot {value!r}")
        return value

    @field_validator("date", "created_at", "expires_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

class Booking(NewBooking):
    id: str
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Booking":
        """Builds a Booking from a stored row, rejecting rows that don't fit the schema."""
        try:
            data = dict(record)
            if data.get("id") is not None:
                data["id"] = str(data["id"])
            return cls.model_validate(data)
        except ValidationError as e:
            raise StoreUnavailable(f"Malformed booking record {record.get('id', '?')}: {e}") from e
