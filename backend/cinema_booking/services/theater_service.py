"""
Theater catalog service.

`get_theater(..., for_update=True)` is how showtime admission serializes
overlap checks per theater; callers that only read use the default.
"""

from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.models.theater import Theater
from cinema_booking.schemas.theater import TheaterCreate, TheaterUpdate
from cinema_booking.core.exceptions import NotFoundError, ConflictError
from cinema_booking.core.logging import get_logger
from cinema_booking.db.errors import guard_db_errors, is_foreign_key_violation, is_unique_violation

logger = get_logger(__name__)


def _duplicate_name(name: str) -> ConflictError:
    return ConflictError(f"Theater with name '{name}' already exists")


async def create_theater(db: AsyncSession, theater_data: TheaterCreate) -> Theater:
    with guard_db_errors("create", "theater"):
        theater = Theater(name=theater_data.name, capacity=theater_data.capacity)
        db.add(theater)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            if is_unique_violation(exc, columns=("name",)):
                raise _duplicate_name(theater_data.name) from exc
            raise
        await db.refresh(theater)

    logger.info("theater_created", theater_id=theater.id, name=theater.name, capacity=theater.capacity)
    return theater


async def list_theaters(db: AsyncSession, name: Optional[str] = None) -> list[Theater]:
    with guard_db_errors("fetch", "theaters"):
        query = select(Theater).order_by(Theater.id)
        if name:
            query = query.where(Theater.name.icontains(name, autoescape=True))
        result = await db.execute(query)
        return list(result.scalars().all())


async def get_theater(db: AsyncSession, theater_id: int, for_update: bool = False) -> Theater:
    """
    Get a theater by ID.

    With `for_update=True` the row is locked until the transaction ends and
    the freshly read values replace whatever the session had cached.
    """
    with guard_db_errors("fetch", "theater"):
        query = select(Theater).where(Theater.id == theater_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        theater = result.scalar_one_or_none()

    if not theater:
        raise NotFoundError(f"Theater with ID {theater_id} not found")
    return theater


async def update_theater(db: AsyncSession, theater_id: int, theater_data: TheaterUpdate) -> Theater:
    theater = await get_theater(db, theater_id)
    fields = {k: v for k, v in theater_data.model_dump(exclude_unset=True).items() if v is not None}

    with guard_db_errors("update", "theater"):
        for field, value in fields.items():
            setattr(theater, field, value)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            if is_unique_violation(exc, columns=("name",)):
                raise _duplicate_name(fields.get("name", "")) from exc
            raise
        await db.refresh(theater)

    logger.info("theater_updated", theater_id=theater.id, fields=sorted(fields))
    return theater


async def remove_theater(db: AsyncSession, theater_id: int) -> None:
    """Hard delete. Refused while any showtime still references the theater."""
    with guard_db_errors("delete", "theater"):
        try:
            result = await db.execute(delete(Theater).where(Theater.id == theater_id))
        except IntegrityError as exc:
            await db.rollback()
            if is_foreign_key_violation(exc):
                raise ConflictError("Cannot delete theater that has associated showtimes") from exc
            raise

    if result.rowcount == 0:
        raise NotFoundError(f"Theater with ID {theater_id} not found")
    logger.info("theater_deleted", theater_id=theater_id)
