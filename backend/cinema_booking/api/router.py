"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from cinema_booking.api.routes import movies, theaters, showtimes, bookings

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(movies.router)
api_router.include_router(theaters.router)
api_router.include_router(showtimes.router)
api_router.include_router(bookings.router)
