"""API routers for the sent-alerts service."""
from fastapi import APIRouter

from . import health


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    return api_router
