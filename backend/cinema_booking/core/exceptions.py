"""
Domain error taxonomy.

Services raise these instead of HTTP exceptions; a single handler in
`cinema_booking.main` turns them into `{"detail": message}` responses with the
status code carried by the class.
"""

from typing import Optional

from fastapi import status


class CinemaError(Exception):
    """Base class for every error the API reports to callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(CinemaError):
    """A referenced movie, theater, showtime or booking does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidRequestError(CinemaError):
    """A business rule rejected the request. Retrying with the same input fails again."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(CinemaError):
    """A uniqueness or reference invariant blocked the write."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ServiceUnavailableError(CinemaError):
    """Transient storage contention (lock timeout, deadlock). Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The system is busy. Please retry the request."


class InternalError(CinemaError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred. Please try again later."
