from app.core.logger import logger
from app.models.api_models import Availability
from app.services.db_service import AvailabilityReader
from app.services.slots import DAY_SLOTS, day_range, parse_date


async def get_availability(reader: AvailabilityReader, date_str: str) -> Availability:
    """
    Free slots for a day: the slot catalog minus the times of that day's
    confirmed bookings. Store failures propagate, a day is never reported
    free because the store could not be read.
    """
    day = parse_date(date_str)
    start, end = day_range(day)

    bookings = await reader.find_confirmed(start, end)
    taken = {b.time for b in bookings}

    booked = [slot for slot in DAY_SLOTS if slot in taken]
    available = [slot for slot in DAY_SLOTS if slot not in taken]

    logger.info(f"📅 Availability {day.isoformat()}: {len(available)} free, booked={booked}")

    return Availability(
        date=day.isoformat(),
        allTimeSlots=list(DAY_SLOTS),
        availableTimeSlots=available,
        bookedTimeSlots=booked,
        isFullyBooked=not available,
    )
