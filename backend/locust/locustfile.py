"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags seat         # Many users, one seat
  locust -f locustfile.py --tags capacity     # Many users, one small showtime
  locust -f locustfile.py --tags throughput   # Catalog cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

After a run, verify in PostgreSQL:
  SELECT showtime_id, seat_number, COUNT(*) FROM bookings
  GROUP BY showtime_id, seat_number HAVING COUNT(*) > 1;   -- must be empty
  SELECT COUNT(*) FROM bookings WHERE showtime_id = X;     -- must be <= capacity
"""

import random
import uuid
from datetime import datetime, timezone, timedelta

import requests
from locust import HttpUser, task, between, tag, events

SMALL_THEATER_CAPACITY = 10

# Shared state, filled once per test run
SHOWTIME_ID = None


def _unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: one movie, one small theater, one showtime tomorrow."""
    global SHOWTIME_ID
    if not environment.host:
        return

    base = environment.host.rstrip("/")
    movie = requests.post(f"{base}/api/v1/movies/", json={
        "title": _unique("Load Test Movie"),
        "genre": "Drama",
        "duration_minutes": 120,
        "rating": 7.5,
        "release_year": 2024,
    }).json()
    theater = requests.post(f"{base}/api/v1/theaters/", json={
        "name": _unique("Load Test Screen"),
        "capacity": SMALL_THEATER_CAPACITY,
    }).json()
    start = (datetime.now(timezone.utc) + timedelta(days=1)).replace(microsecond=0)
    showtime = requests.post(f"{base}/api/v1/showtimes/", json={
        "movie_id": movie["id"],
        "theater_id": theater["id"],
        "start_time": start.isoformat(),
        "price": "12.50",
    }).json()
    SHOWTIME_ID = showtime["id"]
    print(f"\n✓ Created showtime {SHOWTIME_ID} with {SMALL_THEATER_CAPACITY} seats\n")


class SameSeatUser(HttpUser):
    """
    TEST 1: Seat uniqueness - every user wants seat 1.

    Run: locust -f locustfile.py --tags seat -u 100 -r 50 --run-time 30s
    Exactly one 201 is expected; everything else is 409.
    """
    wait_time = between(0, 0.1)

    @tag("seat")
    @task
    def book_seat_one(self):
        if not SHOWTIME_ID:
            return
        with self.client.post("/api/v1/bookings/",
            json={"showtime_id": SHOWTIME_ID, "seat_number": 1, "user_id": _unique("user")},
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class CapacityUser(HttpUser):
    """
    TEST 2: Capacity bound - random seats on a 10-seat showtime.

    Run: locust -f locustfile.py --tags capacity -u 100 -r 50 --run-time 30s
    At most 10 bookings may exist afterwards.
    """
    wait_time = between(0, 0.1)

    @tag("capacity")
    @task
    def book_random_seat(self):
        if not SHOWTIME_ID:
            return
        key = _unique("idem")
        payload = {
            "showtime_id": SHOWTIME_ID,
            "seat_number": random.randint(1, SMALL_THEATER_CAPACITY),
            "user_id": _unique("user"),
            "idempotency_key": key,
        }
        for attempt in range(2):
            with self.client.post("/api/v1/bookings/", json=payload, catch_response=True) as resp:
                if resp.status_code == 503 and attempt == 0:
                    # Lock wait timed out; retry with the same key
                    resp.success()
                    continue
                if resp.status_code in (200, 201, 400, 409):
                    resp.success()
                else:
                    resp.failure(f"Unexpected: {resp.status_code}")
            break


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - catalog cache effectiveness.

    Run once with Redis and once without, compare P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_movies_cached(self):
        self.client.get("/api/v1/movies/", name="/api/v1/movies/ [cached]")

    @tag("throughput", "read")
    @task(5)
    def list_theaters_cached(self):
        self.client.get("/api/v1/theaters/", name="/api/v1/theaters/ [cached]")

    @tag("throughput", "read")
    @task(3)
    def list_showtimes(self):
        self.client.get("/api/v1/showtimes/")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - bad input handling.

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    @tag("edge")
    @task
    def invalid_showtime_id(self):
        with self.client.post("/api/v1/bookings/",
            json={"showtime_id": 999999, "seat_number": 1, "user_id": "edge"},
            catch_response=True,
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def seat_out_of_range(self):
        if not SHOWTIME_ID:
            return
        with self.client.post("/api/v1/bookings/",
            json={"showtime_id": SHOWTIME_ID, "seat_number": SMALL_THEATER_CAPACITY + 1, "user_id": "edge"},
            catch_response=True,
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")

    @tag("edge")
    @task
    def negative_seat(self):
        with self.client.post("/api/v1/bookings/",
            json={"showtime_id": 1, "seat_number": -5, "user_id": "edge"},
            catch_response=True,
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")
