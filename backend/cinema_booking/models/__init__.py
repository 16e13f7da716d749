from cinema_booking.models.movie import Movie
from cinema_booking.models.theater import Theater
from cinema_booking.models.showtime import Showtime
from cinema_booking.models.booking import Booking

__all__ = ["Movie", "Theater", "Showtime", "Booking"]
