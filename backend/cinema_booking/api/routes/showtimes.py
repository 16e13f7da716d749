"""
Showtime endpoints. Creation and rescheduling go through overlap admission.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.core.clock import Clock, get_clock
from cinema_booking.db.session import get_db
from cinema_booking.schemas.common import MessageResponse
from cinema_booking.schemas.showtime import (
    ShowtimeCreate, ShowtimeUpdate, ShowtimeResponse, ShowtimeDetailResponse,
)
from cinema_booking.services import showtime_service

router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


@router.post("/", response_model=ShowtimeResponse, status_code=status.HTTP_201_CREATED)
async def create_showtime_endpoint(
    showtime_data: ShowtimeCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Schedule a showtime.

    The end time defaults to start + movie duration. Rejected with 400 if the
    start is in the past or the window touches or overlaps another showtime in
    the same theater.
    """
    return await showtime_service.create_showtime(db, showtime_data, clock)


@router.get("/", response_model=list[ShowtimeDetailResponse])
async def list_showtimes_endpoint(
    movie_id: Optional[int] = Query(None, gt=0),
    theater_id: Optional[int] = Query(None, gt=0),
    db: AsyncSession = Depends(get_db),
):
    return await showtime_service.list_showtimes(db, movie_id, theater_id)


@router.get("/{showtime_id}", response_model=ShowtimeDetailResponse)
async def get_showtime_endpoint(showtime_id: int, db: AsyncSession = Depends(get_db)):
    return await showtime_service.get_showtime(db, showtime_id)


@router.patch("/{showtime_id}", response_model=ShowtimeResponse)
async def update_showtime_endpoint(
    showtime_id: int,
    showtime_data: ShowtimeUpdate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await showtime_service.update_showtime(db, showtime_id, showtime_data, clock)


@router.post("/update/{showtime_id}", response_model=ShowtimeResponse)
async def update_showtime_legacy_endpoint(
    showtime_id: int,
    showtime_data: ShowtimeUpdate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await showtime_service.update_showtime(db, showtime_id, showtime_data, clock)


@router.delete("/{showtime_id}", response_model=MessageResponse)
async def delete_showtime_endpoint(showtime_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a showtime. 409 while bookings still reference it."""
    await showtime_service.remove_showtime(db, showtime_id)
    return MessageResponse(message="Showtime deleted successfully")
