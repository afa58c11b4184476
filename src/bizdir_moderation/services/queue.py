"""Moderation queue storage.

Items are inserted as ``pending`` and decided at most once. The decision is a
conditional UPDATE guarded by ``status = 'pending'``, so when two requests race
on the same item the database lets exactly one of them through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizdir_moderation.core.settings import settings
from bizdir_moderation.db.time import utcnow
from bizdir_moderation.db.unit_of_work import UnitOfWork
from bizdir_moderation.models import ModerationQueueItem
from bizdir_moderation.models.moderation import DECIDED_STATUSES, STATUS_PENDING
from bizdir_moderation.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueFilter:
    """Listing filter; ``status=None`` matches every status."""

    status: str | None = STATUS_PENDING
    content_type: str | None = None
    moderator_id: int | None = None


@dataclass(frozen=True)
class QueueItemSnapshot:
    """Detached, read-only copy of a queue row plus an optional content summary."""

    id: int
    content_type: str
    content_id: int
    status: str
    moderator_id: int | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
    content: dict[str, Any] | None = None

    @classmethod
    def from_row(cls, row: ModerationQueueItem, content: dict[str, Any] | None = None) -> QueueItemSnapshot:
        return cls(
            id=row.id,
            content_type=row.content_type,
            content_id=row.content_id,
            status=row.status,
            moderator_id=row.moderator_id,
            notes=row.notes,
            created_at=row.created_at,
            updated_at=row.updated_at,
            content=content,
        )


class ModerationQueue:
    """Insert, list and decide queue items."""

    def enqueue(self, uow: UnitOfWork, content_type: str, content_id: int) -> int:
        """Insert a new pending item and return its id.

        Raises:
            PersistenceFailure: If the insert is rejected by the store
        """
        item = ModerationQueueItem(
            content_type=content_type,
            content_id=content_id,
            status=STATUS_PENDING,
        )
        try:
            uow.session.add(item)
            uow.session.flush()
        except SQLAlchemyError as err:
            raise PersistenceFailure(
                f"Failed to add {content_type} {content_id} to the moderation queue"
            ) from err
        return item.id

    def get(self, session: Session, queue_id: int) -> ModerationQueueItem | None:
        return session.get(ModerationQueueItem, queue_id)

    def list_items(
        self,
        session: Session,
        queue_filter: QueueFilter | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModerationQueueItem]:
        """Return items newest first; ties on ``created_at`` fall back to id."""
        queue_filter = queue_filter or QueueFilter()
        limit = settings.queue_default_limit if limit is None else limit
        limit = max(0, min(limit, settings.queue_max_limit))
        offset = max(0, offset)

        query = select(ModerationQueueItem)
        if queue_filter.status is not None:
            query = query.where(ModerationQueueItem.status == queue_filter.status)
        if queue_filter.content_type is not None:
            query = query.where(ModerationQueueItem.content_type == queue_filter.content_type)
        if queue_filter.moderator_id is not None:
            query = query.where(ModerationQueueItem.moderator_id == queue_filter.moderator_id)

        query = (
            query.order_by(ModerationQueueItem.created_at.desc(), ModerationQueueItem.id.desc())
            .limit(limit)
            .offset(offset)
        )
        items = list(session.scalars(query))
        logger.debug("Queue listing %r limit=%d offset=%d returned %d", queue_filter, limit, offset, len(items))
        return items

    def transition(
        self,
        uow: UnitOfWork,
        queue_id: int,
        new_status: str,
        moderator_id: int,
        notes: str | None = None,
    ) -> bool:
        """Move a pending item to ``new_status``.

        Returns:
            False without writing anything if the item is missing, the target
            status is not a decision, or the item is no longer pending
        """
        if new_status not in DECIDED_STATUSES:
            logger.warning("Rejected transition of queue item %s to %r", queue_id, new_status)
            return False

        result = uow.session.execute(
            update(ModerationQueueItem)
            .where(
                ModerationQueueItem.id == queue_id,
                ModerationQueueItem.status == STATUS_PENDING,
            )
            .values(
                status=new_status,
                moderator_id=moderator_id,
                notes=notes,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("Queue item %s is missing or already decided", queue_id)
            return False
        return True
