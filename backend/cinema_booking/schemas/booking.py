"""
Pydantic schemas for booking-related request/response validation.
"""

import uuid
from typing import Optional
from pydantic import BaseModel, Field

from cinema_booking.schemas.common import UTCDateTime
from cinema_booking.schemas.showtime import ShowtimeResponse


class BookingCreate(BaseModel):
    showtime_id: int = Field(..., gt=0)
    seat_number: int = Field(..., ge=1)
    user_id: str = Field(..., min_length=1, max_length=255)
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=255)


class BookingResponse(BaseModel):
    id: uuid.UUID
    showtime_id: int
    seat_number: int
    user_id: str
    idempotency_key: Optional[str]
    created_at: UTCDateTime

    model_config = {"from_attributes": True}


class BookingDetailResponse(BookingResponse):
    showtime: ShowtimeResponse
