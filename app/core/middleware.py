# app/core/middleware.py
"""
HTTP middleware: request correlation and access logging.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import actor_id, get_logger, request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
ACTOR_HEADER = "X-Actor"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Bind the request id and the calling actor to the logging context.

    An upstream request id is reused so a booking flow can be traced
    across services; the id is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = rid
        rid_token = request_id.set(rid)
        actor_token = actor_id.set((request.headers.get(ACTOR_HEADER) or "").strip() or None)
        try:
            response = await call_next(request)
        finally:
            actor_id.reset(actor_token)
            request_id.reset(rid_token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request; 4xx at WARNING, unhandled errors at ERROR."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "%s %s raised %s",
                request.method,
                request.url.path,
                type(exc).__name__,
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"

        level = "warning" if response.status_code >= 400 else "info"
        getattr(logger, level)(
            "%s %s -> %d",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "status_code": response.status_code,
                "elapsed": round(elapsed, 4),
                "query": request.url.query or None,
            },
        )
        return response


def register_middlewares(app: FastAPI) -> None:
    # Added last runs first: the context must exist before the access log reads it
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestContextMiddleware)


__all__ = [
    "RequestContextMiddleware",
    "AccessLogMiddleware",
    "register_middlewares",
    "REQUEST_ID_HEADER",
    "ACTOR_HEADER",
]
