"""
Theater endpoints with Redis caching on list operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.db.session import get_db
from cinema_booking.schemas.common import MessageResponse
from cinema_booking.schemas.theater import TheaterCreate, TheaterUpdate, TheaterResponse
from cinema_booking.services import theater_service
from cinema_booking.services.cache_service import get_cached_listing, set_cached_listing, invalidate_listing

router = APIRouter(prefix="/theaters", tags=["Theaters"])

CACHE_NAMESPACE = "theaters"


@router.post("/", response_model=TheaterResponse, status_code=status.HTTP_201_CREATED)
async def create_theater_endpoint(theater_data: TheaterCreate, db: AsyncSession = Depends(get_db)):
    """Create a theater. Names are unique (409 on duplicates)."""
    theater = await theater_service.create_theater(db, theater_data)
    await invalidate_listing(CACHE_NAMESPACE)
    return theater


@router.get("/", response_model=list[TheaterResponse])
async def list_theaters_endpoint(
    name: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    params = {"name": name or ""}
    cached = await get_cached_listing(CACHE_NAMESPACE, params)
    if cached is not None:
        return cached

    theaters = await theater_service.list_theaters(db, name)
    data = [TheaterResponse.model_validate(t).model_dump(mode="json") for t in theaters]
    await set_cached_listing(CACHE_NAMESPACE, params, data)
    return data


@router.get("/{theater_id}", response_model=TheaterResponse)
async def get_theater_endpoint(theater_id: int, db: AsyncSession = Depends(get_db)):
    return await theater_service.get_theater(db, theater_id)


@router.patch("/{theater_id}", response_model=TheaterResponse)
async def update_theater_endpoint(
    theater_id: int,
    theater_data: TheaterUpdate,
    db: AsyncSession = Depends(get_db),
):
    theater = await theater_service.update_theater(db, theater_id, theater_data)
    await invalidate_listing(CACHE_NAMESPACE)
    return theater


@router.delete("/{theater_id}", response_model=MessageResponse)
async def delete_theater_endpoint(theater_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a theater. 409 while showtimes still reference it."""
    await theater_service.remove_theater(db, theater_id)
    await invalidate_listing(CACHE_NAMESPACE)
    return MessageResponse(message="Theater deleted successfully")
