"""SQLAlchemy models for the moderation subsystem."""

from .content import Listing, Review, Tag
from .moderation import ModerationQueueItem
from .reputation import UserReputation
from .role import UserGrant, UserRole

__all__ = [
    "Listing", "Review", "Tag",
    "ModerationQueueItem",
    "UserReputation",
    "UserGrant", "UserRole",
]
