import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.core.errors import InvalidInput, NotFound, SlotConflict
from app.core.logger import logger
from app.models.db_models import Booking, BookingStatus, NewBooking
from app.services.db_service import BookingWriter
from app.services.slots import (
    DAY_SLOTS,
    day_range,
    end_of_week,
    is_valid_phone,
    parse_date,
    to_24_hour,
    week_window,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    def __init__(self, store: BookingWriter, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def normalize_name(self, name: str) -> str:
        """Collapses runs of whitespace; keeps the customer's own casing."""
        return " ".join(name.split())

    def _validate_id(self, booking_id: str) -> str:
        try:
            return str(uuid.UUID(str(booking_id)))
        except ValueError:
            raise InvalidInput("Invalid booking ID") from None

    async def create_booking(self, day: str, time: str, name: str, phone: str) -> Booking:
        """
        Book a slot for a customer.

        The lookup for an existing confirmed booking only gives a friendly
        early answer; two concurrent requests can both pass it, and the
        store's unique index then rejects the second insert as SlotConflict.
        """
        missing = [
            field_name
            for field_name, value in [("date", day), ("time", time), ("name", name), ("phone", phone)]
            if not value or not str(value).strip()
        ]
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

        booking_day = parse_date(day)
        time = time.strip()
        if time not in DAY_SLOTS:
            raise InvalidInput(f"Invalid time '{time}'. Choose one of: {', '.join(DAY_SLOTS)}")
        if not is_valid_phone(phone):
            raise InvalidInput(f"Invalid phone number '{phone}'")

        name = self.normalize_name(name)
        logger.info(f'📥 Booking Request - Day: {booking_day}, Time: {time}, Name: {name}')

        start, end = day_range(booking_day)
        existing = await self.store.find_confirmed_slot(start, end, time)
        if existing:
            logger.info(f"⛔ Slot {booking_day} {time} already taken by booking {existing.id}")
            raise SlotConflict()

        new_booking = NewBooking(
            date=start,
            time=time,
            customer_name=name,
            phone_number=phone.strip(),
            status=BookingStatus.CONFIRMED,
            created_at=self.clock(),
            expires_at=end_of_week(booking_day),
        )

        try:
            booking = await self.store.insert(new_booking)
        except SlotConflict:
            logger.warning(f"⚠️ Lost race for slot {booking_day} {time}, store rejected the insert")
            raise

        logger.info(f"✅ Booking {booking.id} created for {name} on {booking_day} at {time}")
        return booking

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await self.store.get(self._validate_id(booking_id))
        if not booking:
            raise NotFound()
        return booking

    async def update_status(self, booking_id: str, status: str) -> Booking:
        booking_id = self._validate_id(booking_id)
        try:
            new_status = BookingStatus(status)
        except ValueError:
            raise InvalidInput("Invalid status. Use confirmed, cancelled, or completed") from None

        booking = await self.store.update_status(booking_id, new_status, self.clock())
        if not booking:
            raise NotFound()

        logger.info(f"🔄 Booking {booking_id} is now {new_status.value}")
        return booking

    async def delete_booking(self, booking_id: str) -> None:
        booking_id = self._validate_id(booking_id)
        if not await self.store.delete(booking_id):
            raise NotFound()
        logger.info(f"🗑️ Booking {booking_id} deleted.")

    async def list_bookings(self, week_of: Optional[str] = None) -> List[Booking]:
        """
        All bookings ordered by day and time of day, optionally limited to the
        Monday-start week containing `week_of` (YYYY-MM-DD).
        """
        start = end = None
        if week_of:
            start, end = week_window(parse_date(week_of))

        bookings = await self.store.list(start, end)
        return sorted(bookings, key=lambda b: (b.date, to_24_hour(b.time)))

    async def purge_expired(self) -> int:
        deleted = await self.store.purge_expired(self.clock())
        if deleted:
            logger.info(f"🧹 Purged {deleted} expired bookings")
        return deleted

