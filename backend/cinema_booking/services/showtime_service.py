"""
Showtime admission and lifecycle.

ADMISSION: NO OVERLAPPING SHOWTIMES PER THEATER
===============================================

Problem:
  Two schedulers create showtimes in the same theater at the same moment.
  Both scan for overlaps, both see none, both insert. Result: a double-booked
  screen. The invariant spans rows, so no unique index can catch it.

Solution:
  Lock the theater row (SELECT ... FOR UPDATE) before scanning.

  1. Resolve the movie (NotFound if missing)
  2. Lock the theater row (NotFound if missing)
  3. Validate the window: start not in the past, end after start
  4. Scan the theater's showtimes for a closed-interval overlap
     existing.start_time <= new_end AND existing.end_time >= new_start
  5. Insert

  A concurrent admission for the same theater blocks at step 2 until this
  transaction commits, then sees our row in its scan. Admissions for other
  theaters lock other rows and run in parallel.

  Touching endpoints (one show ending at 20:00, the next starting at 20:00)
  count as overlapping.

Rescheduling (update) runs the same window checks under the same lock,
excluding the showtime being moved from the overlap scan.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cinema_booking.models.movie import Movie
from cinema_booking.models.showtime import Showtime
from cinema_booking.models.theater import Theater
from cinema_booking.schemas.showtime import ShowtimeCreate, ShowtimeUpdate
from cinema_booking.core.clock import Clock, as_utc, system_clock
from cinema_booking.core.exceptions import NotFoundError, InvalidRequestError, ConflictError
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_showtime_admission
from cinema_booking.db.errors import guard_db_errors, is_foreign_key_violation
from cinema_booking.db.session import set_lock_timeout
from cinema_booking.services.movie_service import get_movie
from cinema_booking.services.theater_service import get_theater

logger = get_logger(__name__)


def _end_from_duration(start_time: datetime, movie: Movie) -> datetime:
    return start_time + timedelta(minutes=movie.duration_minutes)


async def _find_overlap(
    db: AsyncSession,
    theater_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Showtime]:
    query = select(Showtime).where(
        Showtime.theater_id == theater_id,
        Showtime.start_time <= end_time,
        Showtime.end_time >= start_time,
    )
    if exclude_id is not None:
        query = query.where(Showtime.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def _admit_window(
    db: AsyncSession,
    theater: Theater,
    start_time: datetime,
    end_time: datetime,
    now: datetime,
    check_start: bool = True,
    exclude_id: Optional[int] = None,
) -> None:
    """Raise InvalidRequestError unless the window may be scheduled. Caller holds the theater lock."""
    try:
        if check_start and start_time < now:
            raise InvalidRequestError("Showtime start time cannot be in the past")
        if end_time <= start_time:
            raise InvalidRequestError("End time must be after start time")

        overlapping = await _find_overlap(db, theater.id, start_time, end_time, exclude_id)
        if overlapping:
            logger.warning(
                "showtime_rejected",
                reason="overlap",
                theater_id=theater.id,
                conflicting_showtime_id=overlapping.id,
            )
            raise InvalidRequestError(
                f"There is already a showtime scheduled in theater {theater.name} at this time"
            )
    except InvalidRequestError:
        record_showtime_admission(admitted=False)
        raise
    record_showtime_admission(admitted=True)


async def create_showtime(
    db: AsyncSession,
    showtime_data: ShowtimeCreate,
    clock: Clock = system_clock,
) -> Showtime:
    movie = await get_movie(db, showtime_data.movie_id)

    with guard_db_errors("create", "showtime"):
        await set_lock_timeout(db)
        theater = await get_theater(db, showtime_data.theater_id, for_update=True)

        start_time = as_utc(showtime_data.start_time)
        if showtime_data.end_time is not None:
            end_time = as_utc(showtime_data.end_time)
        else:
            end_time = _end_from_duration(start_time, movie)

        await _admit_window(db, theater, start_time, end_time, clock.now())

        showtime = Showtime(
            movie_id=movie.id,
            theater_id=theater.id,
            start_time=start_time,
            end_time=end_time,
            price=showtime_data.price,
        )
        db.add(showtime)
        await db.flush()
        await db.refresh(showtime)

    logger.info(
        "showtime_created",
        showtime_id=showtime.id,
        movie_id=movie.id,
        theater_id=theater.id,
        start_time=start_time.isoformat(),
        end_time=end_time.isoformat(),
    )
    return showtime


async def list_showtimes(
    db: AsyncSession,
    movie_id: Optional[int] = None,
    theater_id: Optional[int] = None,
) -> list[Showtime]:
    """List showtimes with their movie and theater, ordered by start time."""
    with guard_db_errors("fetch", "showtimes"):
        query = (
            select(Showtime)
            .options(selectinload(Showtime.movie), selectinload(Showtime.theater))
            .order_by(Showtime.start_time, Showtime.id)
        )
        if movie_id is not None:
            query = query.where(Showtime.movie_id == movie_id)
        if theater_id is not None:
            query = query.where(Showtime.theater_id == theater_id)
        result = await db.execute(query)
        return list(result.scalars().all())


async def get_showtime(db: AsyncSession, showtime_id: int) -> Showtime:
    with guard_db_errors("fetch", "showtime"):
        result = await db.execute(
            select(Showtime)
            .options(selectinload(Showtime.movie), selectinload(Showtime.theater))
            .where(Showtime.id == showtime_id)
            .execution_options(populate_existing=True)
        )
        showtime = result.scalar_one_or_none()

    if not showtime:
        raise NotFoundError(f"Showtime with ID {showtime_id} not found")
    return showtime


async def update_showtime(
    db: AsyncSession,
    showtime_id: int,
    showtime_data: ShowtimeUpdate,
    clock: Clock = system_clock,
) -> Showtime:
    """
    Partially update a showtime.

    Changing the movie, theater, start or end re-runs window admission under
    the (new) theater's lock. Without an explicit end, a new start or movie
    recomputes the end from the movie's duration.
    """
    showtime = await get_showtime(db, showtime_id)
    fields = {k: v for k, v in showtime_data.model_dump(exclude_unset=True).items() if v is not None}

    movie = showtime.movie
    if "movie_id" in fields:
        movie = await get_movie(db, fields["movie_id"])

    with guard_db_errors("update", "showtime"):
        if fields.keys() & {"movie_id", "theater_id", "start_time", "end_time"}:
            await set_lock_timeout(db)
            theater = await get_theater(db, fields.get("theater_id", showtime.theater_id), for_update=True)

            start_time = as_utc(fields.get("start_time", showtime.start_time))
            if "end_time" in fields:
                end_time = as_utc(fields["end_time"])
            elif "start_time" in fields or "movie_id" in fields:
                end_time = _end_from_duration(start_time, movie)
            else:
                end_time = as_utc(showtime.end_time)

            await _admit_window(
                db,
                theater,
                start_time,
                end_time,
                clock.now(),
                check_start="start_time" in fields,
                exclude_id=showtime.id,
            )

            showtime.movie = movie
            showtime.theater = theater
            showtime.start_time = start_time
            showtime.end_time = end_time

        if "price" in fields:
            showtime.price = fields["price"]

        await db.flush()
        await db.refresh(showtime, attribute_names=["start_time", "end_time", "price", "movie_id", "theater_id"])

    logger.info("showtime_updated", showtime_id=showtime.id, fields=sorted(fields))
    return showtime


async def remove_showtime(db: AsyncSession, showtime_id: int) -> None:
    """Hard delete. Refused while any booking still references the showtime."""
    with guard_db_errors("delete", "showtime"):
        try:
            result = await db.execute(delete(Showtime).where(Showtime.id == showtime_id))
        except IntegrityError as exc:
            await db.rollback()
            if is_foreign_key_violation(exc):
                raise ConflictError("Cannot delete showtime that has associated bookings") from exc
            raise

    if result.rowcount == 0:
        raise NotFoundError(f"Showtime with ID {showtime_id} not found")
    logger.info("showtime_deleted", showtime_id=showtime_id)
