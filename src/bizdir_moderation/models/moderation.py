"""Model for the moderation queue."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bizdir_moderation.db.session import Base
from bizdir_moderation.db.time import utcnow

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_ESCALATED = "escalated"

QUEUE_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_ESCALATED)
# Statuses a pending item may move to; none of them can be left again.
DECIDED_STATUSES = frozenset({STATUS_APPROVED, STATUS_REJECTED, STATUS_ESCALATED})

ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"
ACTION_ESCALATE = "escalate"

STATUS_FOR_ACTION = {
    ACTION_APPROVE: STATUS_APPROVED,
    ACTION_REJECT: STATUS_REJECTED,
    ACTION_ESCALATE: STATUS_ESCALATED,
}


class ModerationQueueItem(Base):
    """One piece of content awaiting, or carrying, a moderation verdict."""

    __tablename__ = "biz_moderation_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    content_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=STATUS_PENDING,
        index=True,
    )
    # Set exactly when status leaves pending.
    moderator_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
