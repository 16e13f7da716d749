"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking admission metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking admission attempts',
    ['status']  # created, replayed, not_found, rejected, conflict, unavailable, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking admission latency, including lock wait',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0]
)

# Showtime admission metrics
showtime_admissions = Counter(
    'showtime_admissions_total',
    'Showtime creation and reschedule decisions',
    ['result']  # admitted, rejected
)

# Database metrics
db_errors = Counter(
    'db_errors_total',
    'Database errors surfaced by services',
    ['kind']  # transient, unexpected
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record a booking admission outcome."""
    booking_attempts.labels(status=status).inc()


def record_showtime_admission(admitted: bool):
    result = "admitted" if admitted else "rejected"
    showtime_admissions.labels(result=result).inc()


def record_db_error(kind: str):
    db_errors.labels(kind=kind).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
