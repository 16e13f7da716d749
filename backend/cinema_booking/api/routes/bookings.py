"""
Booking endpoints with concurrency-safe seat admission.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.core.clock import Clock, get_clock
from cinema_booking.db.session import get_db
from cinema_booking.schemas.booking import BookingCreate, BookingResponse, BookingDetailResponse
from cinema_booking.schemas.common import MessageResponse
from cinema_booking.services.booking_service import book_seat, cancel_booking, get_booking, list_bookings

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Book one seat for a showtime.

    Admission is serialized per showtime with a row lock, so a seat can be
    sold once and a showtime never exceeds its theater's capacity.
    Retrying with the same idempotency_key returns the original booking
    with 200 instead of 201.
    """
    booking, created = await book_seat(db, booking_data, clock)
    if not created:
        response.status_code = status.HTTP_200_OK
    return booking


@router.get("/", response_model=list[BookingDetailResponse])
async def list_bookings_endpoint(
    user_id: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    """List bookings, optionally for one user. No match is an empty list."""
    return await list_bookings(db, user_id)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking_endpoint(booking_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await get_booking(db, booking_id)


@router.delete("/{booking_id}", response_model=MessageResponse)
async def delete_booking_endpoint(booking_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await cancel_booking(db, booking_id)
    return MessageResponse(message="Booking deleted successfully")
