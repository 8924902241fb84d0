"""API routes."""

from .connections import router as connections_router
from .match_requests import router as match_requests_router
from .clubs import router as clubs_router, coach_router as coach_links_router
from .admin import router as admin_router

__all__ = [
    "connections_router",
    "match_requests_router",
    "clubs_router",
    "coach_links_router",
    "admin_router",
]
