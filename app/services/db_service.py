import asyncio
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, create_async_client
from supabase.lib.client_options import AsyncClientOptions

from app.core.config import Settings
from app.core.errors import ConfigurationError, SlotConflict, StoreUnavailable
from app.core.logger import logger
from app.models.db_models import Booking, BookingStatus, NewBooking

# Postgres / PostgREST error codes
UNIQUE_VIOLATION = "23505"
UNDEFINED_TABLE = {"42P01", "PGRST205"}
UNDEFINED_FUNCTION = {"42883", "PGRST202"}

SLOT_INDEX_CHECK = "bookings_slot_index_exists"


class AvailabilityReader(Protocol):
    async def find_confirmed(self, start: datetime, end: datetime) -> List[Booking]: ...


class BookingWriter(Protocol):
    async def find_confirmed_slot(self, start: datetime, end: datetime, time: str) -> Optional[Booking]: ...
    async def insert(self, booking: NewBooking) -> Booking: ...
    async def get(self, booking_id: str) -> Optional[Booking]: ...
    async def update_status(self, booking_id: str, status: BookingStatus, updated_at: datetime) -> Optional[Booking]: ...
    async def delete(self, booking_id: str) -> bool: ...
    async def list(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Booking]: ...
    async def purge_expired(self, now: datetime) -> int: ...


class BookingStore(AvailabilityReader, BookingWriter, Protocol):
    async def ping(self) -> None: ...
    async def close(self) -> None: ...


class SupabaseBookingStore:
    """
    Bookings table behind the async Supabase client.

    The client is created lazily on first use and then shared by every
    request. The schema (including the partial unique index that enforces
    one confirmed booking per slot) comes from supabase/migrations.
    """

    def __init__(self, url: str, key: str, table: str = "bookings", timeout: float = 5.0):
        self._url = url
        self._key = key
        self._table = table
        self._timeout = timeout
        self._client: Optional[AsyncClient] = None
        self._lock = asyncio.Lock()

    async def acquire_connection(self) -> AsyncClient:
        if self._client:
            return self._client

        async with self._lock:
            if self._client:
                return self._client

            if not self._url or not self._key:
                raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")

            try:
                client = await create_async_client(
                    self._url,
                    self._key,
                    options=AsyncClientOptions(postgrest_client_timeout=self._timeout),
                )
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise StoreUnavailable(f"Could not connect to the booking store: {e}") from e

            # Make sure the migration has been applied before handing out the client
            await self._execute(client.table(self._table).select("id").limit(1), "verify schema")
            index_check = await self._execute(client.rpc(SLOT_INDEX_CHECK, {"table_name": self._table}), "verify slot index")
            if index_check.data is not True:
                logger.critical("❌ Unique index on confirmed (date, time) is missing, apply supabase/migrations first")
                raise ConfigurationError("Slot uniqueness index does not exist")

            self._client = client
            logger.info(f"✅ Supabase Async client initialized (table '{self._table}')")
            return self._client

    async def _execute(self, query, action: str):
        try:
            return await asyncio.wait_for(query.execute(), timeout=self._timeout)
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise SlotConflict() from e
            if e.code in UNDEFINED_TABLE:
                logger.critical(f"❌ Table '{self._table}' is missing, apply supabase/migrations first")
                raise ConfigurationError(f"Table '{self._table}' does not exist") from e
            if e.code in UNDEFINED_FUNCTION:
                logger.critical(f"❌ Schema check function is missing ({action}), apply supabase/migrations first")
                raise ConfigurationError(f"Schema check failed during {action}") from e
            logger.error(f"❌ DB Error ({action}): {e.code} {e.message}")
            raise StoreUnavailable(f"Booking store rejected {action}: {e.message}") from e
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.error(f"❌ DB Error ({action}): {e!r}")
            raise StoreUnavailable(f"Booking store unreachable during {action}") from e

    async def _table_query(self):
        client = await self.acquire_connection()
        return client.table(self._table)

    async def find_confirmed(self, start: datetime, end: datetime) -> List[Booking]:
        table = await self._table_query()
        response = await self._execute(
            table.select("*")
            .gte("date", start.isoformat())
            .lt("date", end.isoformat())
            .eq("status", BookingStatus.CONFIRMED.value),
            "find confirmed bookings",
        )
        return [Booking.from_record(row) for row in response.data]

    async def find_confirmed_slot(self, start: datetime, end: datetime, time: str) -> Optional[Booking]:
        table = await self._table_query()
        response = await self._execute(
            table.select("*")
            .gte("date", start.isoformat())
            .lt("date", end.isoformat())
            .eq("time", time)
            .eq("status", BookingStatus.CONFIRMED.value)
            .limit(1),
            "check slot",
        )
        if response.data:
            return Booking.from_record(response.data[0])
        return None

    async def insert(self, booking: NewBooking) -> Booking:
        table = await self._table_query()
        response = await self._execute(table.insert(booking.to_record()), "insert booking")
        if not response.data:
            raise StoreUnavailable("Booking store did not return the inserted booking")
        return Booking.from_record(response.data[0])

    async def get(self, booking_id: str) -> Optional[Booking]:
        table = await self._table_query()
        response = await self._execute(table.select("*").eq("id", booking_id).limit(1), "get booking")
        if response.data:
            return Booking.from_record(response.data[0])
        return None

    async def update_status(self, booking_id: str, status: BookingStatus, updated_at: datetime) -> Optional[Booking]:
        table = await self._table_query()
        response = await self._execute(
            table.update({"status": status.value, "updated_at": updated_at.isoformat()}).eq("id", booking_id),
            "update booking",
        )
        if response.data:
            return Booking.from_record(response.data[0])
        return None

    async def delete(self, booking_id: str) -> bool:
        table = await self._table_query()
        response = await self._execute(table.delete().eq("id", booking_id), "delete booking")
        return bool(response.data)

    async def list(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Booking]:
        table = await self._table_query()
        query = table.select("*")
        if start:
            query = query.gte("date", start.isoformat())
        if end:
            query = query.lt("date", end.isoformat())
        response = await self._execute(query.order("date"), "list bookings")
        return [Booking.from_record(row) for row in response.data]

    async def purge_expired(self, now: datetime) -> int:
        table = await self._table_query()
        response = await self._execute(table.delete().lt("expires_at", now.isoformat()), "purge expired")
        return len(response.data or [])

    async def ping(self) -> None:
        table = await self._table_query()
        await self._execute(table.select("id").limit(1), "ping")

    async def close(self) -> None:
        if self._client:
            await self._client.postgrest.aclose()
            self._client = None
            logger.info("🔌 Supabase client closed")


class InMemoryBookingStore:
    """
    Process-local store with the same contract as the Supabase table,
    including the confirmed-only uniqueness on (date, time). Records past
    their expires_at are dropped whenever the store is touched.
    """

    def __init__(self, clock: Callable[[], datetime] = None):
        self._bookings: Dict[str, Booking] = {}
        self._lock = asyncio.Lock()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _drop_expired(self, now: datetime) -> int:
        expired = [booking_id for booking_id, b in self._bookings.items() if b.expires_at < now]
        for booking_id in expired:
            del self._bookings[booking_id]
        return len(expired)

    def _slot_taken(self, date: datetime, time: str, exclude_id: str = None) -> bool:
        return any(
            b.id != exclude_id and b.date == date and b.time == time and b.status == BookingStatus.CONFIRMED
            for b in self._bookings.values()
        )

    async def find_confirmed(self, start: datetime, end: datetime) -> List[Booking]:
        self._drop_expired(self._clock())
        return [
            b for b in self._bookings.values()
            if start <= b.date < end and b.status == BookingStatus.CONFIRMED
        ]

    async def find_confirmed_slot(self, start: datetime, end: datetime, time: str) -> Optional[Booking]:
        for booking in await self.find_confirmed(start, end):
            if booking.time == time:
                return booking
        return None

    async def insert(self, booking: NewBooking) -> Booking:
        async with self._lock:
            self._drop_expired(self._clock())
            if booking.status == BookingStatus.CONFIRMED and self._slot_taken(booking.date, booking.time):
                raise SlotConflict()
            stored = Booking(id=str(uuid.uuid4()), **booking.model_dump())
            self._bookings[stored.id] = stored
            return stored

    async def get(self, booking_id: str) -> Optional[Booking]:
        self._drop_expired(self._clock())
        return self._bookings.get(booking_id)

    async def update_status(self, booking_id: str, status: BookingStatus, updated_at: datetime) -> Optional[Booking]:
        async with self._lock:
            self._drop_expired(self._clock())
            booking = self._bookings.get(booking_id)
            if not booking:
                return None
            if status == BookingStatus.CONFIRMED and self._slot_taken(booking.date, booking.time, exclude_id=booking_id):
                raise SlotConflict()
            updated = booking.model_copy(update={"status": status, "updated_at": updated_at})
            self._bookings[booking_id] = updated
            return updated

    async def delete(self, booking_id: str) -> bool:
        async with self._lock:
            self._drop_expired(self._clock())
            return self._bookings.pop(booking_id, None) is not None

    async def list(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Booking]:
        self._drop_expired(self._clock())
        return [
            b for b in self._bookings.values()
            if (start is None or b.date >= start) and (end is None or b.date < end)
        ]

    async def purge_expired(self, now: datetime) -> int:
        async with self._lock:
            return self._drop_expired(now)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None


def build_store(settings: Settings) -> BookingStore:
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "supabase":
        return SupabaseBookingStore(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY,
            table=settings.BOOKINGS_TABLE,
            timeout=settings.DB_TIMEOUT_SECONDS,
        )
    if backend == "memory":
        logger.warning("⚠️ Using in-memory booking store, data is lost on restart")
        return InMemoryBookingStore()
    raise ConfigurationError(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}'")
