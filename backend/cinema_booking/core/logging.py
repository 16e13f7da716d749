"""
Structured logging configuration using structlog.

Every event carries the service name and environment. Events emitted while a
request is being served also carry its request_id, method and path, bound by
the request middleware through contextvars and cleared when the request ends,
so admission decisions and database errors can be traced back to one call.
JSON in production, console rendering elsewhere.
"""

import logging
import sys
from typing import Optional

import structlog
from cinema_booking.core.config import get_settings

REQUEST_CONTEXT_KEYS = ("request_id", "method", "path")

# Driver and pool chatter; raised to INFO when DEBUG is on
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "sqlalchemy.pool", "asyncpg", "aiosqlite")


def add_service_context(logger, method_name: str, event_dict: dict) -> dict:
    settings = get_settings()
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def bind_request_context(request_id: str, method: str, path: str) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars(*REQUEST_CONTEXT_KEYS)


def _renderer(environment: str):
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.ENVIRONMENT == "production":
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Stdlib records (uvicorn, alembic) go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings.ENVIRONMENT),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    quiet_level = logging.INFO if settings.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
