from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import router as api_v1_router
from app.config.settings import settings
from app.core.error_handlers import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import register_middlewares
from app.db.init_db import init_db


def _add_cors(app: FastAPI) -> None:
    # Explicit origins get credentials; the wildcard does not
    origins = settings.CORS_ORIGINS
    wildcard = not origins or origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )


def create_app() -> FastAPI:
    """Build the inventory, availability and pricing API."""
    setup_logging()

    app = FastAPI(title=settings.APP_NAME, version=settings.API_VERSION, debug=settings.DEBUG)

    _add_cors(app)
    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # Production schemas come from migrations
    @app.on_event("startup")
    async def create_schema() -> None:
        if not settings.is_production():
            init_db()

    return app


app = create_app()
