from cinema_booking.schemas.common import MessageResponse
from cinema_booking.schemas.movie import MovieCreate, MovieUpdate, MovieResponse
from cinema_booking.schemas.theater import TheaterCreate, TheaterUpdate, TheaterResponse
from cinema_booking.schemas.showtime import (
    ShowtimeCreate, ShowtimeUpdate, ShowtimeResponse, ShowtimeDetailResponse,
)
from cinema_booking.schemas.booking import BookingCreate, BookingResponse, BookingDetailResponse

__all__ = [
    "MessageResponse",
    "MovieCreate", "MovieUpdate", "MovieResponse",
    "TheaterCreate", "TheaterUpdate", "TheaterResponse",
    "ShowtimeCreate", "ShowtimeUpdate", "ShowtimeResponse", "ShowtimeDetailResponse",
    "BookingCreate", "BookingResponse", "BookingDetailResponse",
]
