"""API endpoints for the ThiQaX verification service."""

from fastapi import APIRouter

from .health import router as health_router
from .integrations import router as integrations_router

# Create main API router
api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["Health"])
api_router.include_router(integrations_router, prefix="/integrations", tags=["Integrations"])

__all__ = ["api_router"]
