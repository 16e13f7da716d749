"""
Pydantic schemas for showtime requests and responses.

Only field-level shape is validated here. Time-window rules (start in the
future, end after start, no overlap) are enforced by showtime admission so
internal callers cannot bypass them.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from cinema_booking.schemas.common import UTCDateTime
from cinema_booking.schemas.movie import MovieResponse
from cinema_booking.schemas.theater import TheaterResponse


class ShowtimeCreate(BaseModel):
    movie_id: int = Field(..., gt=0)
    theater_id: int = Field(..., gt=0)
    start_time: UTCDateTime
    # Derived from the movie's duration when omitted
    end_time: Optional[UTCDateTime] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ShowtimeUpdate(BaseModel):
    movie_id: Optional[int] = Field(None, gt=0)
    theater_id: Optional[int] = Field(None, gt=0)
    start_time: Optional[UTCDateTime] = None
    end_time: Optional[UTCDateTime] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class ShowtimeResponse(BaseModel):
    id: int
    movie_id: int
    theater_id: int
    start_time: UTCDateTime
    end_time: UTCDateTime
    price: Decimal

    model_config = {"from_attributes": True}


class ShowtimeDetailResponse(ShowtimeResponse):
    movie: MovieResponse
    theater: TheaterResponse
