"""
Logging helpers shared by the services.

stdlib logging is configured from ``app.config.logging``; structlog sits on
top of it for the audit trail. The request id and the acting user travel in
context variables so every record emitted while serving a request carries
them without threading them through call signatures.
"""

import logging
import time
from contextvars import ContextVar
from functools import wraps
from typing import Any, Dict, Optional

import structlog

from app.config.settings import settings

request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
actor_id: ContextVar[Optional[str]] = ContextVar("actor_id", default=None)

SERVICE_NAME = "pms-inventory-core"

# Seconds; anything above is tagged so slow quotes and forecasts stand out
SLOW_CALL_THRESHOLD = 1.0


def _current_context() -> Dict[str, str]:
    context = {}
    if request_id.get():
        context["request_id"] = request_id.get()
    if actor_id.get():
        context["actor"] = actor_id.get()
    return context


def add_request_context(logger, method_name, event_dict):
    """structlog processor: stamp request id, actor and service identity."""
    for key, value in _current_context().items():
        event_dict.setdefault(key, value)
    event_dict["service"] = SERVICE_NAME
    event_dict["environment"] = settings.ENVIRONMENT
    return event_dict


def tag_slow_calls(logger, method_name, event_dict):
    elapsed = event_dict.get("elapsed")
    if elapsed is not None:
        event_dict["slow"] = elapsed > SLOW_CALL_THRESHOLD
    return event_dict


def configure_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer(key_order=["event"])
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_request_context,
            tag_slow_calls,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def quiet_library_loggers() -> None:
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if not settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class ContextLogger(logging.LoggerAdapter):
    """
    stdlib adapter that merges the request context into ``extra``.

    Explicit ``extra`` keys win over the context variables.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]):
        extra = {**_current_context(), **(kwargs.get("extra") or {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: Optional[str] = None) -> ContextLogger:
    return ContextLogger(logging.getLogger(name or "app"), {})


def get_structured_logger(name: Optional[str] = None):
    return structlog.get_logger(name or "app")


def log_execution_time(logger_name: Optional[str] = None):
    """
    Log how long a service call took, at DEBUG on success and ERROR on failure.

    The exception is re-raised untouched.
    """

    def decorator(func):
        logger = get_logger(logger_name or func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                logger.error(
                    "%s failed after %.4fs",
                    func.__qualname__,
                    time.perf_counter() - started,
                    extra={"error_type": type(exc).__name__},
                )
                raise
            elapsed = time.perf_counter() - started
            logger.debug(
                "%s took %.4fs",
                func.__qualname__,
                elapsed,
                extra={"elapsed": round(elapsed, 4), "slow": elapsed > SLOW_CALL_THRESHOLD},
            )
            return result

        return wrapper

    return decorator


def setup_logging() -> None:
    """stdlib dictConfig first, then structlog on top when enabled."""
    from app.config.logging import setup_logging as configure_stdlib_logging

    configure_stdlib_logging()
    if settings.ENABLE_STRUCTURED_LOGGING:
        configure_structlog()
    quiet_library_loggers()

    get_logger(__name__).info(
        "Logging initialised",
        extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT},
    )


__all__ = [
    "ContextLogger",
    "get_logger",
    "get_structured_logger",
    "log_execution_time",
    "setup_logging",
    "request_id",
    "actor_id",
]
