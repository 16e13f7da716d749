"""
Tests for showtime admission: end-time derivation, past starts, and the
closed-interval overlap rule per theater.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient


def parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def schedule(client: AsyncClient, movie: dict, theater: dict, start: str, end: str = None):
    payload = {
        "movie_id": movie["id"],
        "theater_id": theater["id"],
        "start_time": start,
        "price": "10.00",
    }
    if end is not None:
        payload["end_time"] = end
    return await client.post("/api/v1/showtimes/", json=payload)


@pytest.mark.asyncio
async def test_create_showtime_derives_end_time(client: AsyncClient, test_movie, test_theater, at):
    """Without an end time the movie's duration is used."""
    response = await schedule(client, test_movie, test_theater, at(18))
    assert response.status_code == 201
    data = response.json()
    assert data["movie_id"] == test_movie["id"]
    assert data["theater_id"] == test_theater["id"]
    assert parse(data["end_time"]) - parse(data["start_time"]) == timedelta(minutes=120)
    assert Decimal(data["price"]) == Decimal("10.00")


@pytest.mark.asyncio
async def test_create_showtime_explicit_end_time(client: AsyncClient, test_movie, test_theater, at):
    response = await schedule(client, test_movie, test_theater, at(18), at(20, 30))
    assert response.status_code == 201
    assert parse(response.json()["end_time"]) == parse(at(20, 30))


@pytest.mark.asyncio
async def test_create_showtime_in_the_past(client: AsyncClient, test_movie, test_theater, at):
    response = await schedule(client, test_movie, test_theater, at(9, days=-1))
    assert response.status_code == 400
    assert response.json()["detail"] == "Showtime start time cannot be in the past"


@pytest.mark.asyncio
async def test_create_showtime_end_before_start(client: AsyncClient, test_movie, test_theater, at):
    response = await schedule(client, test_movie, test_theater, at(18), at(17))
    assert response.status_code == 400
    assert response.json()["detail"] == "End time must be after start time"


@pytest.mark.asyncio
async def test_create_showtime_unknown_movie(client: AsyncClient, test_theater, at):
    response = await schedule(client, {"id": 99999}, test_theater, at(18))
    assert response.status_code == 404
    assert response.json()["detail"] == "Movie with ID 99999 not found"


@pytest.mark.asyncio
async def test_create_showtime_unknown_theater(client: AsyncClient, test_movie, at):
    response = await schedule(client, test_movie, {"id": 99999}, at(18))
    assert response.status_code == 404
    assert response.json()["detail"] == "Theater with ID 99999 not found"


@pytest.mark.asyncio
async def test_create_showtime_negative_price(client: AsyncClient, test_movie, test_theater, at):
    response = await client.post("/api/v1/showtimes/", json={
        "movie_id": test_movie["id"],
        "theater_id": test_theater["id"],
        "start_time": at(18),
        "price": "-1",
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_overlapping_showtime_rejected(client: AsyncClient, test_movie, test_theater, at):
    """A: 18:00-20:00. B: 19:00-21:00 overlaps. C: 20:00-21:00 touches and is rejected too."""
    response = await schedule(client, test_movie, test_theater, at(18), at(20))
    assert response.status_code == 201

    response = await schedule(client, test_movie, test_theater, at(19), at(21))
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "There is already a showtime scheduled in theater Screen 1 at this time"
    )

    response = await schedule(client, test_movie, test_theater, at(20), at(21))
    assert response.status_code == 400
    assert "already a showtime scheduled" in response.json()["detail"]

    # Store unchanged
    response = await client.get("/api/v1/showtimes/", params={"theater_id": test_theater["id"]})
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_enclosing_window_rejected(client: AsyncClient, test_movie, test_theater, at):
    await schedule(client, test_movie, test_theater, at(18), at(20))
    response = await schedule(client, test_movie, test_theater, at(17), at(21))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_back_to_back_with_gap_allowed(client: AsyncClient, test_movie, test_theater, at):
    await schedule(client, test_movie, test_theater, at(18), at(20))
    response = await schedule(client, test_movie, test_theater, at(20, 1), at(22))
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_same_window_in_other_theater_allowed(
    client: AsyncClient, test_movie, test_theater, small_theater, at
):
    await schedule(client, test_movie, test_theater, at(18), at(20))
    response = await schedule(client, test_movie, small_theater, at(18), at(20))
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_list_showtimes_includes_movie_and_theater(client: AsyncClient, test_showtime):
    response = await client.get("/api/v1/showtimes/")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["movie"]["title"] == "The Test Movie"
    assert data[0]["theater"]["name"] == "Screen 1"


@pytest.mark.asyncio
async def test_list_showtimes_filter_by_movie(client: AsyncClient, test_showtime):
    response = await client.get("/api/v1/showtimes/", params={"movie_id": 99999})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_showtime(client: AsyncClient, test_showtime):
    response = await client.get(f"/api/v1/showtimes/{test_showtime['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_showtime["id"]
    assert data["theater"]["capacity"] == 50


@pytest.mark.asyncio
async def test_get_showtime_not_found(client: AsyncClient):
    response = await client.get("/api/v1/showtimes/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_showtime_price(client: AsyncClient, test_showtime):
    response = await client.patch(f"/api/v1/showtimes/{test_showtime['id']}", json={"price": "15.75"})
    assert response.status_code == 200
    assert Decimal(response.json()["price"]) == Decimal("15.75")
    assert response.json()["start_time"] == test_showtime["start_time"]


@pytest.mark.asyncio
async def test_update_showtime_legacy_route(client: AsyncClient, test_showtime):
    response = await client.post(f"/api/v1/showtimes/update/{test_showtime['id']}", json={"price": "5.00"})
    assert response.status_code == 200
    assert Decimal(response.json()["price"]) == Decimal("5.00")


@pytest.mark.asyncio
async def test_reschedule_recomputes_end(client: AsyncClient, test_showtime, at):
    response = await client.patch(
        f"/api/v1/showtimes/{test_showtime['id']}",
        json={"start_time": at(21)},
    )
    assert response.status_code == 200
    data = response.json()
    assert parse(data["start_time"]) == parse(at(21))
    assert parse(data["end_time"]) == parse(at(23))


@pytest.mark.asyncio
async def test_reschedule_into_overlap_rejected(client: AsyncClient, test_movie, test_theater, test_showtime, at):
    """Rescheduling re-runs the overlap check and leaves the row unchanged on rejection."""
    late = await schedule(client, test_movie, test_theater, at(21), at(23))
    assert late.status_code == 201

    response = await client.patch(
        f"/api/v1/showtimes/{late.json()['id']}",
        json={"start_time": at(19)},
    )
    assert response.status_code == 400

    response = await client.get(f"/api/v1/showtimes/{late.json()['id']}")
    assert parse(response.json()["start_time"]) == parse(at(21))


@pytest.mark.asyncio
async def test_reschedule_within_own_window_allowed(client: AsyncClient, test_showtime, at):
    """A showtime never overlaps itself."""
    response = await client.patch(
        f"/api/v1/showtimes/{test_showtime['id']}",
        json={"end_time": at(20, 30)},
    )
    assert response.status_code == 200
    assert parse(response.json()["end_time"]) == parse(at(20, 30))


@pytest.mark.asyncio
async def test_move_showtime_to_busy_theater_rejected(
    client: AsyncClient, test_movie, small_theater, test_showtime, at
):
    await schedule(client, test_movie, small_theater, at(19), at(21))
    response = await client.patch(
        f"/api/v1/showtimes/{test_showtime['id']}",
        json={"theater_id": small_theater["id"]},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_showtime_unknown_movie(client: AsyncClient, test_showtime):
    response = await client.patch(f"/api/v1/showtimes/{test_showtime['id']}", json={"movie_id": 99999})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_showtime(client: AsyncClient, test_showtime):
    response = await client.delete(f"/api/v1/showtimes/{test_showtime['id']}")
    assert response.status_code == 200
    assert response.json()["message"] == "Showtime deleted successfully"

    response = await client.get(f"/api/v1/showtimes/{test_showtime['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_showtime_not_found(client: AsyncClient):
    response = await client.delete("/api/v1/showtimes/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_showtime_with_bookings(client: AsyncClient, test_showtime):
    booking = await client.post("/api/v1/bookings/", json={
        "showtime_id": test_showtime["id"],
        "seat_number": 1,
        "user_id": "alice",
    })
    assert booking.status_code == 201

    response = await client.delete(f"/api/v1/showtimes/{test_showtime['id']}")
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete showtime that has associated bookings"

    # Nothing was removed
    response = await client.get(f"/api/v1/showtimes/{test_showtime['id']}")
    assert response.status_code == 200
    response = await client.get(f"/api/v1/bookings/{booking.json()['id']}")
    assert response.status_code == 200
