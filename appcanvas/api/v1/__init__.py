"""
API v1 endpoints.
"""
from fastapi import APIRouter

from .health import router as health_router
from .apps import router as apps_router
from .data import router as data_router
from .ai import router as ai_router
from .components import router as components_router

api_router = APIRouter()
api_router.include_router(apps_router)
api_router.include_router(data_router)
api_router.include_router(ai_router)
api_router.include_router(components_router)

__all__ = [
    "api_router",
    "health_router",
    "apps_router",
    "data_router",
    "ai_router",
    "components_router",
]
