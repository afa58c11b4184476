"""Pydantic schemas for API request/response validation."""

from .capability import CapabilityResponse
from .moderation import (
    EnqueueRequest,
    EnqueueResponse,
    ModerationDecision,
    ModerationResult,
    QueueItemResponse,
)

__all__ = [
    "CapabilityResponse",
    "EnqueueRequest",
    "EnqueueResponse",
    "ModerationDecision",
    "ModerationResult",
    "QueueItemResponse",
]
