"""
Movie catalog endpoints with Redis caching on list operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.db.session import get_db
from cinema_booking.schemas.common import MessageResponse
from cinema_booking.schemas.movie import MovieCreate, MovieUpdate, MovieResponse
from cinema_booking.services import movie_service
from cinema_booking.services.cache_service import get_cached_listing, set_cached_listing, invalidate_listing

router = APIRouter(prefix="/movies", tags=["Movies"])

CACHE_NAMESPACE = "movies"


@router.post("/", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
async def create_movie_endpoint(movie_data: MovieCreate, db: AsyncSession = Depends(get_db)):
    movie = await movie_service.create_movie(db, movie_data)
    await invalidate_listing(CACHE_NAMESPACE)
    return movie


@router.get("/", response_model=list[MovieResponse])
async def list_movies_endpoint(
    title: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """List movies, optionally filtered by title substring. Cached in Redis."""
    params = {"title": title or ""}
    cached = await get_cached_listing(CACHE_NAMESPACE, params)
    if cached is not None:
        return cached

    movies = await movie_service.list_movies(db, title)
    data = [MovieResponse.model_validate(m).model_dump(mode="json") for m in movies]
    await set_cached_listing(CACHE_NAMESPACE, params, data)
    return data


@router.get("/all", response_model=list[MovieResponse])
async def list_all_movies_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_movies_endpoint(title=None, db=db)


@router.get("/{movie_id}", response_model=MovieResponse)
async def get_movie_endpoint(movie_id: int, db: AsyncSession = Depends(get_db)):
    return await movie_service.get_movie(db, movie_id)


@router.patch("/{movie_id}", response_model=MovieResponse)
async def update_movie_endpoint(movie_id: int, movie_data: MovieUpdate, db: AsyncSession = Depends(get_db)):
    movie = await movie_service.update_movie(db, movie_id, movie_data)
    await invalidate_listing(CACHE_NAMESPACE)
    return movie


@router.post("/update/{movie_title}", response_model=MovieResponse)
async def update_movie_by_title_endpoint(
    movie_title: str,
    movie_data: MovieUpdate,
    db: AsyncSession = Depends(get_db),
):
    movie = await movie_service.update_movie_by_title(db, movie_title, movie_data)
    await invalidate_listing(CACHE_NAMESPACE)
    return movie


@router.delete("/title/{movie_title}", response_model=MessageResponse)
async def delete_movie_by_title_endpoint(movie_title: str, db: AsyncSession = Depends(get_db)):
    await movie_service.remove_movie_by_title(db, movie_title)
    await invalidate_listing(CACHE_NAMESPACE)
    return MessageResponse(message="Movie deleted successfully")


@router.delete("/{movie_id}", response_model=MessageResponse)
async def delete_movie_endpoint(movie_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a movie. 409 while showtimes still reference it."""
    await movie_service.remove_movie(db, movie_id)
    await invalidate_listing(CACHE_NAMESPACE)
    return MessageResponse(message="Movie deleted successfully")
