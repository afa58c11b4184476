"""Reputation store: the only source of truth for reputation-gated decisions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bizdir_moderation.db.time import utcnow
from bizdir_moderation.models import UserReputation
from bizdir_moderation.models.reputation import DEFAULT_LEVEL, level_for_points

logger = logging.getLogger(__name__)

InvalidationListener = Callable[[int], None]


@dataclass(frozen=True)
class ReputationRecord:
    """Snapshot of a user's reputation."""

    user_id: int
    points: int
    level: str


class ReputationStore:
    """Persisted per-user points with invalidation hooks for caches.

    Every mutator commits its own transaction first and only then notifies the
    registered listeners, so a listener that reloads immediately sees the new
    value.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._listeners: list[InvalidationListener] = []

    def add_listener(self, listener: InvalidationListener) -> None:
        """Register a callback invoked with the user id after each mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: InvalidationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get(self, user_id: int) -> int:
        """Return the user's points; 0 when absent or when the table is unavailable."""
        try:
            with self._session_factory() as session:
                points = session.scalar(
                    select(UserReputation.reputation_points).where(UserReputation.user_id == user_id)
                )
        except SQLAlchemyError:
            logger.warning("Reputation lookup failed for user %s; treating as 0", user_id, exc_info=True)
            return 0
        return int(points) if points is not None else 0

    def record(self, user_id: int) -> ReputationRecord | None:
        with self._session_factory() as session:
            row = session.scalar(select(UserReputation).where(UserReputation.user_id == user_id))
            if row is None:
                return None
            return ReputationRecord(user_id=row.user_id, points=row.reputation_points, level=row.level)

    def ensure(self, user_id: int) -> None:
        """Create the user's record with zero points if it does not exist yet."""
        with self._session_factory() as session:
            exists = session.scalar(select(UserReputation.id).where(UserReputation.user_id == user_id))
            if exists is not None:
                return
            session.add(UserReputation(user_id=user_id, reputation_points=0, level=DEFAULT_LEVEL))
            try:
                session.commit()
            except IntegrityError:
                # Another request created the row first.
                session.rollback()
                logger.debug("Reputation record for user %s created concurrently", user_id)

    def award(self, user_id: int, delta: int) -> int:
        """Add ``delta`` points (may be negative) and return the new total.

        The addition runs as one UPDATE on the stored value, so concurrent
        awards for the same user never lose a delta.
        """
        self.ensure(user_id)
        new_points = UserReputation.reputation_points + delta
        with self._session_factory() as session:
            session.execute(
                update(UserReputation)
                .where(UserReputation.user_id == user_id)
                .values(reputation_points=case((new_points < 0, 0), else_=new_points))
                .execution_options(synchronize_session=False)
            )
            points = self._refresh_level(session, user_id)
            session.commit()
        logger.info("Reputation for user %s changed by %d to %d", user_id, delta, points)
        self._notify(user_id)
        return points

    def set_points(self, user_id: int, points: int) -> None:
        self.ensure(user_id)
        with self._session_factory() as session:
            session.execute(
                update(UserReputation)
                .where(UserReputation.user_id == user_id)
                .values(reputation_points=max(0, points))
                .execution_options(synchronize_session=False)
            )
            points = self._refresh_level(session, user_id)
            session.commit()
        logger.info("Reputation for user %s set to %d", user_id, points)
        self._notify(user_id)

    def delete(self, user_id: int) -> None:
        """Remove the user's record as part of user deletion."""
        with self._session_factory() as session:
            session.execute(delete(UserReputation).where(UserReputation.user_id == user_id))
            session.commit()
        self._notify(user_id)

    @staticmethod
    def _refresh_level(session: Session, user_id: int) -> int:
        # Runs after the points UPDATE, inside the transaction holding its write lock.
        points = session.scalar(
            select(UserReputation.reputation_points).where(UserReputation.user_id == user_id)
        )
        session.execute(
            update(UserReputation)
            .where(UserReputation.user_id == user_id)
            .values(level=level_for_points(points), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return int(points)

    def _notify(self, user_id: int) -> None:
        for listener in list(self._listeners):
            listener(user_id)
