"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the inventory core
"""
from importlib import import_module
from typing import List

from fastapi import APIRouter

from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        503: {"description": "Upstream Unavailable"},
        500: {"description": "Internal Server Error"}
    }
)

registered_routers: List[str] = []


def import_module_router(module_path: str, module_name: str) -> None:
    """Import an endpoint module and include its ``router``"""
    module = import_module(module_path)
    router.include_router(getattr(module, "router"))
    registered_routers.append(module_name)
    logger.debug(f"Included {module_name} router from {module_path}")


import_module_router("app.api.v1.endpoints.health", "health")
import_module_router("app.api.v1.endpoints.inventory", "inventory")
import_module_router("app.api.v1.endpoints.availability", "availability")
import_module_router("app.api.v1.endpoints.pricing", "pricing")
import_module_router("app.api.v1.endpoints.forecast", "forecast")

logger.info(f"API v1 routers registered: {', '.join(registered_routers)}")

__all__ = ["router"]
