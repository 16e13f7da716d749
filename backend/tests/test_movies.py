"""
Tests for movie catalog endpoints.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

MOVIE = {
    "title": "Inception",
    "genre": "Sci-Fi",
    "duration_minutes": 148,
    "rating": 8.8,
    "release_year": 2010,
}


@pytest.mark.asyncio
async def test_create_movie(client: AsyncClient):
    response = await client.post("/api/v1/movies/", json=MOVIE)
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Inception"
    assert data["duration_minutes"] == 148
    assert Decimal(data["rating"]) == Decimal("8.8")
    assert "id" in data


@pytest.mark.asyncio
async def test_create_movie_invalid_duration(client: AsyncClient):
    """Duration outside 1..600 minutes returns 422."""
    response = await client.post("/api/v1/movies/", json={**MOVIE, "duration_minutes": 0})
    assert response.status_code == 422

    response = await client.post("/api/v1/movies/", json={**MOVIE, "duration_minutes": 601})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_movie_invalid_rating(client: AsyncClient):
    response = await client.post("/api/v1/movies/", json={**MOVIE, "rating": 11})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_movies_with_title_filter(client: AsyncClient, test_movie):
    await client.post("/api/v1/movies/", json=MOVIE)

    response = await client.get("/api/v1/movies/")
    assert response.status_code == 200
    assert len(response.json()) == 2

    response = await client.get("/api/v1/movies/", params={"title": "incep"})
    assert response.status_code == 200
    titles = [m["title"] for m in response.json()]
    assert titles == ["Inception"]

    response = await client.get("/api/v1/movies/", params={"title": "no such movie"})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_list_all_movies_alias(client: AsyncClient, test_movie):
    response = await client.get("/api/v1/movies/all")
    assert response.status_code == 200
    assert [m["id"] for m in response.json()] == [test_movie["id"]]


@pytest.mark.asyncio
async def test_get_movie(client: AsyncClient, test_movie):
    response = await client.get(f"/api/v1/movies/{test_movie['id']}")
    assert response.status_code == 200
    assert response.json()["title"] == "The Test Movie"


@pytest.mark.asyncio
async def test_get_movie_not_found(client: AsyncClient):
    response = await client.get("/api/v1/movies/99999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Movie with ID 99999 not found"


@pytest.mark.asyncio
async def test_update_movie(client: AsyncClient, test_movie):
    response = await client.patch(
        f"/api/v1/movies/{test_movie['id']}",
        json={"genre": "Thriller", "duration_minutes": 95},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["genre"] == "Thriller"
    assert data["duration_minutes"] == 95
    assert data["title"] == "The Test Movie"


@pytest.mark.asyncio
async def test_update_movie_not_found(client: AsyncClient):
    response = await client.patch("/api/v1/movies/99999", json={"genre": "Thriller"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_movie_by_title(client: AsyncClient, test_movie):
    response = await client.post("/api/v1/movies/update/The Test Movie", json={"rating": 6.0})
    assert response.status_code == 200
    assert response.json()["id"] == test_movie["id"]
    assert Decimal(response.json()["rating"]) == Decimal("6.0")

    response = await client.post("/api/v1/movies/update/Unknown Title", json={"rating": 6.0})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_movie(client: AsyncClient, test_movie):
    response = await client.delete(f"/api/v1/movies/{test_movie['id']}")
    assert response.status_code == 200
    assert response.json()["message"] == "Movie deleted successfully"

    response = await client.get(f"/api/v1/movies/{test_movie['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_movie_by_title(client: AsyncClient, test_movie):
    response = await client.delete("/api/v1/movies/title/The Test Movie")
    assert response.status_code == 200

    response = await client.delete("/api/v1/movies/title/The Test Movie")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_movie_not_found(client: AsyncClient):
    response = await client.delete("/api/v1/movies/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_movie_with_showtimes(client: AsyncClient, test_movie, test_showtime):
    """A scheduled movie cannot be deleted and stays intact."""
    response = await client.delete(f"/api/v1/movies/{test_movie['id']}")
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete movie that has associated showtimes"

    response = await client.get(f"/api/v1/movies/{test_movie['id']}")
    assert response.status_code == 200
    response = await client.get(f"/api/v1/showtimes/{test_showtime['id']}")
    assert response.status_code == 200
