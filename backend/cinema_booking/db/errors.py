"""
Database error classification and translation.

Constraint violations are recognised by SQLSTATE where the driver exposes one
(asyncpg, psycopg2) and by message text on SQLite. Services use these helpers
to turn storage-level violations into domain errors, and `guard_db_errors`
to make sure nothing else leaks out as an opaque driver exception.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from cinema_booking.core.exceptions import CinemaError, InternalError, ServiceUnavailableError
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_db_error

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

# lock_not_available, serialization_failure, deadlock_detected, query_canceled
TRANSIENT_SQLSTATES = {"55P03", "40001", "40P01", "57014"}

_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
}


def _driver_errors(exc: DBAPIError) -> list:
    """The DBAPI exception and, for adapted drivers like asyncpg, its native cause."""
    errors = []
    orig = getattr(exc, "orig", None)
    if orig is not None:
        errors.append(orig)
        cause = getattr(orig, "__cause__", None)
        if cause is not None:
            errors.append(cause)
    return errors


def sqlstate(exc: DBAPIError) -> Optional[str]:
    for err in _driver_errors(exc):
        code = getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
        if code:
            return str(code)
    message = str(getattr(exc, "orig", exc))
    for fragment, code in _SQLITE_MESSAGES.items():
        if fragment in message:
            return code
    return None


def constraint_name(exc: DBAPIError) -> Optional[str]:
    for err in _driver_errors(exc):
        name = getattr(err, "constraint_name", None)
        if name:
            return name
        diag = getattr(err, "diag", None)
        if diag is not None and getattr(diag, "constraint_name", None):
            return diag.constraint_name
    return None


def _matches(exc: DBAPIError, constraint: Optional[str], columns: Sequence[str]) -> bool:
    name = constraint_name(exc)
    if name is not None:
        return constraint is None or name == constraint
    if constraint is None and not columns:
        return True
    message = str(getattr(exc, "orig", exc))
    if constraint and constraint in message:
        return True
    # SQLite reports columns instead: "UNIQUE constraint failed: bookings.showtime_id, bookings.seat_number"
    return bool(columns) and all(f".{column}" in message for column in columns)


def is_unique_violation(
    exc: DBAPIError,
    constraint: Optional[str] = None,
    columns: Sequence[str] = (),
) -> bool:
    return sqlstate(exc) == UNIQUE_VIOLATION and _matches(exc, constraint, columns)


def is_foreign_key_violation(exc: DBAPIError) -> bool:
    return sqlstate(exc) == FOREIGN_KEY_VIOLATION


def is_transient(exc: DBAPIError) -> bool:
    if sqlstate(exc) in TRANSIENT_SQLSTATES:
        return True
    return "database is locked" in str(getattr(exc, "orig", exc))


@contextmanager
def guard_db_errors(operation: str, entity: str) -> Iterator[None]:
    """
    Let domain errors through unchanged, report lock contention as retryable,
    and wrap any other storage failure as InternalError with the cause kept
    for the logs only.
    """
    try:
        yield
    except CinemaError:
        raise
    except DBAPIError as exc:
        if is_transient(exc):
            record_db_error("transient")
            logger.warning(
                "database_contention",
                operation=operation,
                entity=entity,
                code=sqlstate(exc),
            )
            raise ServiceUnavailableError() from exc
        record_db_error("unexpected")
        logger.error(
            "database_error",
            operation=operation,
            entity=entity,
            code=sqlstate(exc),
            detail=str(exc.orig),
            exc_info=True,
        )
        raise InternalError(f"Failed to {operation} {entity}. Please try again later.") from exc
    except SQLAlchemyError as exc:
        record_db_error("unexpected")
        logger.error("database_error", operation=operation, entity=entity, detail=str(exc), exc_info=True)
        raise InternalError(f"Failed to {operation} {entity}. Please try again later.") from exc
