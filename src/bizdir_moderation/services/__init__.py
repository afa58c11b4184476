"""Business logic services for content moderation."""

from .capabilities import CapabilityEvaluator, ContentRef
from .content_sync import ContentStatusSynchronizer
from .events import EventDispatcher
from .moderation import ModerationService
from .queue import ModerationQueue, QueueFilter
from .reputation import ReputationStore
from .roles import SqlRoleStore

__all__ = [
    "CapabilityEvaluator",
    "ContentRef",
    "ContentStatusSynchronizer",
    "EventDispatcher",
    "ModerationService",
    "ModerationQueue",
    "QueueFilter",
    "ReputationStore",
    "SqlRoleStore",
]
