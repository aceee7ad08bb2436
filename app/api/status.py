from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_store
from app.core.errors import ReservationError
from app.core.logger import logger
from app.services.db_service import BookingStore

router = APIRouter()

@router.get("/status")
async def store_status(store: BookingStore = Depends(get_store)):
    """Health check that actually reaches the booking store."""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await store.ping()
    except ReservationError as e:
        logger.error(f"❌ Store health check failed: {e.message}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "message": "Failed to connect to the booking store", "timestamp": timestamp},
        )
    return {"status": "ok", "message": "Booking store connection successful", "timestamp": timestamp}
