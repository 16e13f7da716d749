"""
Booking service with concurrency-safe seat admission.

CONCURRENCY STRATEGY: Pessimistic Row Lock per Showtime
=======================================================

Problem:
  Two users try to book the last free slot of a showtime simultaneously.
  Both count N-1 existing bookings, both pass the capacity check, both insert.
  Result: Overbooking. The same race lets two users pass the "seat is free"
  check for one seat.

Solution:
  Every admission for a showtime takes SELECT ... FOR UPDATE on that showtime
  row before it reads anything it decides on.

  0. Idempotency fast path: a known idempotency key returns its booking
  1. Lock the showtime row (theater joined in for capacity)
  2. Validate, in order:
       a. showtime exists                     -> NotFoundError
       b. showtime has not started            -> InvalidRequestError
       c. seat_number <= theater capacity     -> InvalidRequestError
       d. seat not already booked             -> ConflictError
       e. bookings for showtime < capacity    -> InvalidRequestError
  3. Insert, flush

  For a fixed showtime, admissions run one at a time: the Nth successful
  booking observes exactly N-1 earlier ones. Admissions for different
  showtimes lock different rows and do not wait on each other.

  The unique constraint on (showtime_id, seat_number) is the final safety
  net. If it fires anyway it is reported as the same ConflictError as (d).

Alternatives considered:
  - Optimistic version counter with retry: needs a denormalized seat counter
    on the showtime, and retries under contention on a popular showtime.
  - SERIALIZABLE isolation with retry loop: correct, but every conflict
    surfaces as a serialization failure the client has to retry.

Lock waits are bounded by DB_LOCK_TIMEOUT_MS; a timeout surfaces as a
retryable 503, and the idempotency key makes the retry safe.
"""

import uuid
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from cinema_booking.models.booking import Booking
from cinema_booking.models.showtime import Showtime
from cinema_booking.schemas.booking import BookingCreate
from cinema_booking.core.clock import Clock, as_utc, system_clock
from cinema_booking.core.exceptions import (
    CinemaError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    ServiceUnavailableError,
)
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import booking_latency, record_booking_attempt
from cinema_booking.db.errors import guard_db_errors, is_unique_violation
from cinema_booking.db.session import set_lock_timeout

logger = get_logger(__name__)

SEAT_CONSTRAINT = "uq_bookings_showtime_seat"
IDEMPOTENCY_CONSTRAINT = "uq_bookings_idempotency_key"

_OUTCOMES = {
    NotFoundError: "not_found",
    InvalidRequestError: "rejected",
    ConflictError: "conflict",
    ServiceUnavailableError: "unavailable",
}


def _seat_taken(seat_number: int, showtime_id: int) -> ConflictError:
    return ConflictError(f"Seat {seat_number} is already booked for showtime {showtime_id}")


async def _find_by_idempotency_key(db: AsyncSession, key: str) -> Optional[Booking]:
    result = await db.execute(select(Booking).where(Booking.idempotency_key == key))
    return result.scalar_one_or_none()


async def _is_seat_booked(db: AsyncSession, showtime_id: int, seat_number: int) -> bool:
    booking_id = await db.scalar(
        select(Booking.id).where(
            Booking.showtime_id == showtime_id,
            Booking.seat_number == seat_number,
        )
    )
    return booking_id is not None


async def _lock_showtime(db: AsyncSession, showtime_id: int) -> Optional[Showtime]:
    await set_lock_timeout(db)
    result = await db.execute(
        select(Showtime)
        .options(joinedload(Showtime.theater, innerjoin=True))
        .where(Showtime.id == showtime_id)
        .with_for_update(of=Showtime)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _admit(db: AsyncSession, booking_data: BookingCreate, clock: Clock) -> tuple[Booking, bool]:
    showtime_id = booking_data.showtime_id
    seat_number = booking_data.seat_number
    key = booking_data.idempotency_key

    # Step 0: idempotent replay
    if key:
        existing = await _find_by_idempotency_key(db, key)
        if existing:
            logger.info("booking_replayed", booking_id=str(existing.id), idempotency_key=key)
            return existing, False

    # Step 1: serialize against every other admission for this showtime
    showtime = await _lock_showtime(db, showtime_id)

    # Step 2: validation
    if not showtime:
        raise NotFoundError(f"Showtime with ID {showtime_id} not found")

    if key:
        # A same-key request may have committed while we waited for the lock
        existing = await _find_by_idempotency_key(db, key)
        if existing:
            logger.info("booking_replayed", booking_id=str(existing.id), idempotency_key=key)
            return existing, False

    now = clock.now()
    if as_utc(showtime.start_time) < now:
        raise InvalidRequestError("Cannot book a showtime that has already started")

    capacity = showtime.theater.capacity
    if seat_number > capacity:
        raise InvalidRequestError(f"Seat number {seat_number} exceeds theater capacity of {capacity}")

    if await _is_seat_booked(db, showtime_id, seat_number):
        raise _seat_taken(seat_number, showtime_id)

    booked = await db.scalar(
        select(func.count()).select_from(Booking).where(Booking.showtime_id == showtime_id)
    )
    if booked >= capacity:
        raise InvalidRequestError(f"Cannot book - theater capacity of {capacity} has been reached")

    # Step 3: commit the seat
    booking = Booking(
        id=uuid.uuid4(),
        showtime_id=showtime_id,
        seat_number=seat_number,
        user_id=booking_data.user_id,
        idempotency_key=key,
        created_at=now,
    )
    db.add(booking)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if key and is_unique_violation(exc, IDEMPOTENCY_CONSTRAINT, ("idempotency_key",)):
            existing = await _find_by_idempotency_key(db, key)
            if existing:
                logger.info("booking_replayed", booking_id=str(existing.id), idempotency_key=key)
                return existing, False
        if is_unique_violation(exc, SEAT_CONSTRAINT, ("showtime_id", "seat_number")):
            logger.warning(
                "booking_seat_constraint_hit",
                showtime_id=showtime_id,
                seat_number=seat_number,
            )
            raise _seat_taken(seat_number, showtime_id) from exc
        raise
    await db.refresh(booking)

    logger.info(
        "booking_created",
        booking_id=str(booking.id),
        showtime_id=showtime_id,
        seat_number=seat_number,
        user_id=booking.user_id,
        booked=booked + 1,
        capacity=capacity,
    )
    return booking, True


async def book_seat(
    db: AsyncSession,
    booking_data: BookingCreate,
    clock: Clock = system_clock,
) -> tuple[Booking, bool]:
    """
    Admit one seat booking.

    Returns the booking and whether it was created by this call (False when an
    idempotency key replayed an earlier booking).
    """
    with booking_latency.time():
        try:
            with guard_db_errors("create", "booking"):
                booking, created = await _admit(db, booking_data, clock)
        except CinemaError as exc:
            record_booking_attempt(_OUTCOMES.get(type(exc), "error"))
            if not isinstance(exc, ServiceUnavailableError):
                logger.info(
                    "booking_rejected",
                    showtime_id=booking_data.showtime_id,
                    seat_number=booking_data.seat_number,
                    reason=exc.message,
                )
            raise

    record_booking_attempt("created" if created else "replayed")
    return booking, created


async def list_bookings(db: AsyncSession, user_id: Optional[str] = None) -> list[Booking]:
    """All bookings with their showtime, newest first; optionally for one user only."""
    with guard_db_errors("fetch", "bookings"):
        query = (
            select(Booking)
            .options(selectinload(Booking.showtime))
            .order_by(Booking.created_at.desc())
        )
        if user_id:
            query = query.where(Booking.user_id == user_id)
        result = await db.execute(query)
        return list(result.scalars().all())


async def get_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    with guard_db_errors("fetch", "booking"):
        result = await db.execute(
            select(Booking)
            .options(selectinload(Booking.showtime))
            .where(Booking.id == booking_id)
        )
        booking = result.scalar_one_or_none()

    if not booking:
        raise NotFoundError(f'Booking with ID "{booking_id}" not found')
    return booking


async def cancel_booking(db: AsyncSession, booking_id: uuid.UUID) -> None:
    """Hard delete; bookings have no dependents."""
    with guard_db_errors("delete", "booking"):
        result = await db.execute(delete(Booking).where(Booking.id == booking_id))

    if result.rowcount == 0:
        raise NotFoundError(f'Booking with ID "{booking_id}" not found')
    logger.info("booking_deleted", booking_id=str(booking_id))
