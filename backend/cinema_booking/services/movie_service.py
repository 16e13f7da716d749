"""
Movie catalog service.
"""

from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.models.movie import Movie
from cinema_booking.schemas.movie import MovieCreate, MovieUpdate
from cinema_booking.core.exceptions import NotFoundError, ConflictError
from cinema_booking.core.logging import get_logger
from cinema_booking.db.errors import guard_db_errors, is_foreign_key_violation

logger = get_logger(__name__)


async def create_movie(db: AsyncSession, movie_data: MovieCreate) -> Movie:
    with guard_db_errors("create", "movie"):
        movie = Movie(**movie_data.model_dump())
        db.add(movie)
        await db.flush()
        await db.refresh(movie)

    logger.info("movie_created", movie_id=movie.id, title=movie.title)
    return movie


async def list_movies(db: AsyncSession, title: Optional[str] = None) -> list[Movie]:
    """List movies, optionally filtered by a case-insensitive title substring."""
    with guard_db_errors("fetch", "movies"):
        query = select(Movie).order_by(Movie.id)
        if title:
            query = query.where(Movie.title.icontains(title, autoescape=True))
        result = await db.execute(query)
        return list(result.scalars().all())


async def get_movie(db: AsyncSession, movie_id: int) -> Movie:
    with guard_db_errors("fetch", "movie"):
        movie = await db.get(Movie, movie_id)
    if not movie:
        raise NotFoundError(f"Movie with ID {movie_id} not found")
    return movie


async def get_movie_by_title(db: AsyncSession, title: str) -> Movie:
    with guard_db_errors("fetch", "movie"):
        result = await db.execute(select(Movie).where(Movie.title == title).order_by(Movie.id).limit(1))
        movie = result.scalar_one_or_none()
    if not movie:
        raise NotFoundError(f'Movie with title "{title}" not found')
    return movie


async def _apply_update(db: AsyncSession, movie: Movie, movie_data: MovieUpdate) -> Movie:
    with guard_db_errors("update", "movie"):
        for field, value in movie_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(movie, field, value)
        await db.flush()
        await db.refresh(movie)

    logger.info("movie_updated", movie_id=movie.id)
    return movie


async def update_movie(db: AsyncSession, movie_id: int, movie_data: MovieUpdate) -> Movie:
    movie = await get_movie(db, movie_id)
    return await _apply_update(db, movie, movie_data)


async def update_movie_by_title(db: AsyncSession, title: str, movie_data: MovieUpdate) -> Movie:
    movie = await get_movie_by_title(db, title)
    return await _apply_update(db, movie, movie_data)


async def remove_movie(db: AsyncSession, movie_id: int) -> None:
    """Hard delete. Refused while any showtime still references the movie."""
    with guard_db_errors("delete", "movie"):
        try:
            result = await db.execute(delete(Movie).where(Movie.id == movie_id))
        except IntegrityError as exc:
            await db.rollback()
            if is_foreign_key_violation(exc):
                raise ConflictError("Cannot delete movie that has associated showtimes") from exc
            raise

    if result.rowcount == 0:
        raise NotFoundError(f"Movie with ID {movie_id} not found")
    logger.info("movie_deleted", movie_id=movie_id)


async def remove_movie_by_title(db: AsyncSession, title: str) -> None:
    movie = await get_movie_by_title(db, title)
    await remove_movie(db, movie.id)
