"""API endpoint modules for version 1."""

from .capabilities import router as capabilities_router
from .moderation import router as moderation_router

__all__ = [
    "capabilities_router",
    "moderation_router",
]
