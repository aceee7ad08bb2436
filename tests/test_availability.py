import pytest
from unittest.mock import AsyncMock

from app.core.errors import InvalidInput, StoreUnavailable
from app.services.availability_service import get_availability
from app.services.slots import DAY_SLOTS


@pytest.mark.asyncio
async def test_empty_day_is_fully_available(store):
    result = await get_availability(store, "2025-03-10")

    assert result.date == "2025-03-10"
    assert result.allTimeSlots == DAY_SLOTS
    assert result.availableTimeSlots == DAY_SLOTS
    assert result.bookedTimeSlots == []
    assert result.isFullyBooked is False


@pytest.mark.asyncio
async def test_booked_and_available_partition_the_catalog(store, service):
    await service.create_booking("2025-03-10", "8:30 PM", "Ann", "555-000-1111")
    await service.create_booking("2025-03-10", "12:30 PM", "Bob", "555-000-2222")

    result = await get_availability(store, "2025-03-10")

    assert result.availableTimeSlots == ["4:30 PM"]
    # Catalog order, not booking order
    assert result.bookedTimeSlots == ["12:30 PM", "8:30 PM"]
    assert set(result.availableTimeSlots) | set(result.bookedTimeSlots) == set(result.allTimeSlots)
    assert not set(result.availableTimeSlots) & set(result.bookedTimeSlots)
    assert result.isFullyBooked is False


@pytest.mark.asyncio
async def test_fully_booked_day(store, service):
    for i, slot in enumerate(DAY_SLOTS):
        await service.create_booking("2025-03-10", slot, f"Guest {i}", f"555-000-000{i}")

    result = await get_availability(store, "2025-03-10")

    assert result.availableTimeSlots == []
    assert result.isFullyBooked is True


@pytest.mark.asyncio
async def test_bookings_on_other_days_do_not_count(store, service):
    await service.create_booking("2025-03-09", "4:30 PM", "Ann", "555-000-1111")
    await service.create_booking("2025-03-11", "4:30 PM", "Bob", "555-000-2222")

    result = await get_availability(store, "2025-03-10")
    assert "4:30 PM" in result.availableTimeSlots


@pytest.mark.asyncio
async def test_round_trip_booking_removes_slot(store, service):
    await service.create_booking(day="2025-03-10", time="4:30 PM", name="Jane Doe", phone="555-123-4567")

    result = await get_availability(store, "2025-03-10")
    assert "4:30 PM" not in result.availableTimeSlots
    assert "4:30 PM" in result.bookedTimeSlots


@pytest.mark.asyncio
async def test_cancelled_bookings_free_the_slot(store, service):
    booking = await service.create_booking("2025-03-10", "4:30 PM", "Jane Doe", "555-123-4567")
    await service.update_status(booking.id, "cancelled")

    result = await get_availability(store, "2025-03-10")
    assert "4:30 PM" in result.availableTimeSlots


@pytest.mark.asyncio
async def test_availability_is_idempotent(store, service):
    await service.create_booking("2025-03-10", "12:30 PM", "Ann", "555-000-1111")

    first = await get_availability(store, "2025-03-10")
    second = await get_availability(store, "2025-03-10")
    assert first == second


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["", None, "03/10/2025", "2025-13-01", "9999-12-31"])
async def test_invalid_date(store, value):
    with pytest.raises(InvalidInput):
        await get_availability(store, value)


@pytest.mark.asyncio
async def test_store_failure_is_not_reported_as_available():
    reader = AsyncMock()
    reader.find_confirmed.side_effect = StoreUnavailable()

    with pytest.raises(StoreUnavailable):
        await get_availability(reader, "2025-03-10")
