from fastapi import APIRouter, Depends, Query

from app.models.api_models import Availability
from app.services.availability_service import get_availability
from app.services.db_service import AvailabilityReader
from app.api.deps import get_store

router = APIRouter()

@router.get("/availability", response_model=Availability)
async def availability_by_query(date: str = Query(None), store: AvailabilityReader = Depends(get_store)):
    return await get_availability(store, date)

@router.get("/availability/{date}", response_model=Availability)
async def availability_by_path(date: str, store: AvailabilityReader = Depends(get_store)):
    return await get_availability(store, date)
