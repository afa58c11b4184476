"""Tests for moderation queue storage."""

import pytest

from bizdir_moderation.db.unit_of_work import UnitOfWork
from bizdir_moderation.models import ModerationQueueItem
from bizdir_moderation.services.queue import ModerationQueue, QueueFilter

MODERATOR = 900


@pytest.fixture()
def queue() -> ModerationQueue:
    return ModerationQueue()


def _enqueue(session_factory, queue, content_type: str = "review", content_id: int = 1) -> int:
    with UnitOfWork(session_factory) as uow:
        queue_id = queue.enqueue(uow, content_type, content_id)
        uow.commit()
    return queue_id


def _transition(session_factory, queue, queue_id: int, status: str, notes: str | None = None) -> bool:
    with UnitOfWork(session_factory) as uow:
        moved = queue.transition(uow, queue_id, status, MODERATOR, notes)
        if moved:
            uow.commit()
    return moved


def _fetch(session_factory, queue_id: int) -> ModerationQueueItem:
    with session_factory() as session:
        return session.get(ModerationQueueItem, queue_id)


def test_enqueue_creates_pending_item(session_factory, queue) -> None:
    queue_id = _enqueue(session_factory, queue, "tag", 7)

    item = _fetch(session_factory, queue_id)
    assert item.status == "pending"
    assert item.content_type == "tag"
    assert item.content_id == 7
    assert item.moderator_id is None
    assert item.notes is None
    assert item.created_at is not None


def test_enqueue_does_not_deduplicate(session_factory, queue) -> None:
    first = _enqueue(session_factory, queue, "review", 5)
    second = _enqueue(session_factory, queue, "review", 5)

    assert first != second
    assert _transition(session_factory, queue, first, "approved") is True
    assert _fetch(session_factory, second).status == "pending"


def test_uncommitted_enqueue_is_discarded(session_factory, queue, db_session) -> None:
    with UnitOfWork(session_factory) as uow:
        queue.enqueue(uow, "review", 5)

    assert db_session.query(ModerationQueueItem).count() == 0


def test_transition_sets_moderator_and_notes(session_factory, queue) -> None:
    queue_id = _enqueue(session_factory, queue)

    assert _transition(session_factory, queue, queue_id, "rejected", "spam") is True

    item = _fetch(session_factory, queue_id)
    assert item.status == "rejected"
    assert item.moderator_id == MODERATOR
    assert item.notes == "spam"


@pytest.mark.parametrize("target", ["pending", "archived", ""])
def test_transition_rejects_illegal_targets(session_factory, queue, target) -> None:
    queue_id = _enqueue(session_factory, queue)

    assert _transition(session_factory, queue, queue_id, target) is False
    assert _fetch(session_factory, queue_id).status == "pending"


def test_transition_unknown_item(session_factory, queue) -> None:
    assert _transition(session_factory, queue, 999_999, "approved") is False


@pytest.mark.parametrize("first", ["approved", "rejected", "escalated"])
def test_decided_items_cannot_be_decided_again(session_factory, queue, first) -> None:
    queue_id = _enqueue(session_factory, queue)
    assert _transition(session_factory, queue, queue_id, first) is True

    for target in ("approved", "rejected", "escalated"):
        assert _transition(session_factory, queue, queue_id, target) is False
    assert _fetch(session_factory, queue_id).status == first


def test_list_defaults_to_pending(session_factory, queue, db_session) -> None:
    pending = _enqueue(session_factory, queue)
    decided = _enqueue(session_factory, queue)
    _transition(session_factory, queue, decided, "approved")

    ids = [item.id for item in queue.list_items(db_session)]

    assert ids == [pending]


def test_list_filters(session_factory, queue, db_session) -> None:
    review = _enqueue(session_factory, queue, "review", 1)
    tag = _enqueue(session_factory, queue, "tag", 2)
    listing = _enqueue(session_factory, queue, "listing", 3)
    _transition(session_factory, queue, tag, "approved")

    assert [i.id for i in queue.list_items(db_session, QueueFilter(content_type="review"))] == [review]
    assert [i.id for i in queue.list_items(db_session, QueueFilter(status="approved", moderator_id=MODERATOR))] == [tag]
    assert [i.id for i in queue.list_items(db_session, QueueFilter(status="approved", moderator_id=1))] == []
    assert {i.id for i in queue.list_items(db_session, QueueFilter(status=None))} == {review, tag, listing}


def test_pagination_is_stable(session_factory, queue, db_session) -> None:
    created = [_enqueue(session_factory, queue, "review", n) for n in range(25)]

    first_page = queue.list_items(db_session, QueueFilter(), limit=20, offset=0)
    second_page = queue.list_items(db_session, QueueFilter(), offset=20)

    first_ids = [item.id for item in first_page]
    second_ids = [item.id for item in second_page]
    assert len(first_ids) == 20
    assert len(second_ids) == 5
    assert not set(first_ids) & set(second_ids)
    assert sorted(first_ids + second_ids) == sorted(created)
    # Newest first, id breaking ties on identical timestamps.
    assert first_ids + second_ids == sorted(created, reverse=True)


def test_limit_is_clamped(session_factory, queue, db_session) -> None:
    for n in range(3):
        _enqueue(session_factory, queue, "review", n)

    assert len(queue.list_items(db_session, limit=10_000)) == 3
    assert queue.list_items(db_session, limit=0) == []
    assert len(queue.list_items(db_session, limit=2, offset=-5)) == 2
