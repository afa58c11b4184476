"""Version 1 API endpoints."""

from .endpoints import capabilities_router, moderation_router

__all__ = [
    "capabilities_router",
    "moderation_router",
]
