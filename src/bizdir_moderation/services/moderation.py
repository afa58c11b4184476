"""Moderation orchestrator: authorize, decide, synchronize, announce."""

from __future__ import annotations

import dataclasses
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bizdir_moderation.db.unit_of_work import UnitOfWork
from bizdir_moderation.models.moderation import STATUS_FOR_ACTION
from bizdir_moderation.services.capabilities import CAP_MODERATE_CONTENT, CapabilityEvaluator
from bizdir_moderation.services.content_sync import CONTENT_TYPE_LISTING, ContentStatusSynchronizer
from bizdir_moderation.services.errors import PersistenceFailure
from bizdir_moderation.services.events import CONTENT_MODERATED, CONTENT_QUEUED, EventSink
from bizdir_moderation.services.identity import IdentityContext
from bizdir_moderation.services.queue import ModerationQueue, QueueFilter, QueueItemSnapshot

logger = logging.getLogger(__name__)


class ModerationService:
    """Service handling queue intake and moderation verdicts.

    One instance serves one request: ``identity`` is the caller. The evaluator,
    synchronizer and event sink are long-lived and shared between requests.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        evaluator: CapabilityEvaluator,
        synchronizer: ContentStatusSynchronizer,
        events: EventSink,
        identity: IdentityContext,
        queue: ModerationQueue | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._evaluator = evaluator
        self._synchronizer = synchronizer
        self._events = events
        self._identity = identity
        self._queue = queue or ModerationQueue()

    def enqueue(self, content_type: str, content_id: int) -> int:
        """Add content to the moderation queue.

        Every call creates a new pending item, even for content already queued.

        Args:
            content_type: Registered content type (review, listing, tag)
            content_id: Identifier of the content record

        Returns:
            The new queue item id

        Raises:
            InvalidContentType: If no handler is registered for ``content_type``
            PersistenceFailure: If the item could not be stored
        """
        self._synchronizer.handler_for(content_type)
        logger.debug("Adding to queue | type: %s, id: %s", content_type, content_id)

        with UnitOfWork(self._session_factory) as uow:
            queue_id = self._queue.enqueue(uow, content_type, content_id)
            try:
                uow.commit()
            except SQLAlchemyError as err:
                logger.error(
                    "Failed to add to queue | content_type: %s, content_id: %s",
                    content_type,
                    content_id,
                    exc_info=True,
                )
                raise PersistenceFailure("Failed to add content to the moderation queue") from err

        logger.info("Added to queue | queue_id: %s, type: %s, id: %s", queue_id, content_type, content_id)
        self._events.emit(
            CONTENT_QUEUED,
            {"queue_id": queue_id, "content_type": content_type, "content_id": content_id},
        )
        return queue_id

    def submit_listing(self, listing_id: int) -> int:
        """Queue a newly created listing for review."""
        return self.enqueue(CONTENT_TYPE_LISTING, listing_id)

    def list_queue(
        self,
        queue_filter: QueueFilter | None = None,
        limit: int | None = None,
        offset: int = 0,
        include_content: bool = False,
    ) -> list[QueueItemSnapshot]:
        """Return queue items, newest first, optionally with content summaries."""
        with self._session_factory() as session:
            rows = self._queue.list_items(session, queue_filter, limit=limit, offset=offset)
            return [
                QueueItemSnapshot.from_row(
                    row,
                    self._synchronizer.describe(session, row.content_type, row.content_id)
                    if include_content
                    else None,
                )
                for row in rows
            ]

    def get_item(self, queue_id: int) -> QueueItemSnapshot | None:
        with self._session_factory() as session:
            row = self._queue.get(session, queue_id)
            return QueueItemSnapshot.from_row(row) if row is not None else None

    def moderate(self, queue_id: int, action: str, notes: str | None = "") -> bool:
        """Apply a verdict to a queued item.

        The queue transition and the content update commit together or not at
        all. Every failure, including denial, is reported as False.
        """
        moderator_id = self._identity.current_user_id()
        if not self._evaluator.can(CAP_MODERATE_CONTENT, moderator_id):
            logger.warning("Permission denied for moderation | user_id: %s", moderator_id)
            return False

        new_status = STATUS_FOR_ACTION.get(action)
        if new_status is None:
            logger.warning("Invalid moderation action: %r", action)
            return False

        item = self.get_item(queue_id)
        if item is None:
            logger.warning("Queue item not found | id: %s", queue_id)
            return False

        logger.debug("Moderating item | queue_id: %s, action: %s", queue_id, action)
        try:
            with UnitOfWork(self._session_factory) as uow:
                if not self._queue.transition(uow, queue_id, new_status, moderator_id, notes):
                    return False
                if not self._synchronizer.apply(uow, item.content_type, item.content_id, action):
                    logger.error(
                        "Content sync failed, rolling back | queue_id: %s, content_type: %s, "
                        "content_id: %s, action: %s",
                        queue_id,
                        item.content_type,
                        item.content_id,
                        action,
                    )
                    return False
                uow.commit()
        except Exception:
            logger.error(
                "Moderation failed | queue_id: %s, content_type: %s, content_id: %s, action: %s",
                queue_id,
                item.content_type,
                item.content_id,
                action,
                exc_info=True,
            )
            return False

        logger.info("Moderated item | queue_id: %s, action: %s, moderator: %s", queue_id, action, moderator_id)
        decided = dataclasses.replace(item, status=new_status, moderator_id=moderator_id, notes=notes)
        self._events.emit(CONTENT_MODERATED, {"queue_id": queue_id, "action": action, "item": decided})
        return True
