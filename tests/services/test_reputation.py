"""Tests for the reputation store."""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bizdir_moderation.db.session import Base
from bizdir_moderation.models import UserReputation
from bizdir_moderation.models.reputation import level_for_points
from bizdir_moderation.services.reputation import ReputationStore


def test_missing_record_reads_as_zero(session_factory) -> None:
    store = ReputationStore(session_factory)

    assert store.get(1) == 0
    assert store.record(1) is None


def test_missing_table_reads_as_zero() -> None:
    """A store pointed at a schema without the reputation table stays total."""
    bare_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = ReputationStore(sessionmaker(bind=bare_engine))

    assert store.get(42) == 0
    bare_engine.dispose()


def test_ensure_is_idempotent(session_factory, db_session) -> None:
    store = ReputationStore(session_factory)

    store.ensure(7)
    store.ensure(7)

    rows = db_session.scalars(select(UserReputation).where(UserReputation.user_id == 7)).all()
    assert len(rows) == 1
    assert rows[0].reputation_points == 0
    assert rows[0].level == "contributor"


def _record_created_by_another_request(mocker, db_session, user_id: int, points: int) -> None:
    """Commit a record from another session, then hide it from our first lookup."""
    db_session.add(UserReputation(user_id=user_id, reputation_points=points, level="contributor"))
    db_session.commit()

    real_scalar = Session.scalar
    lookups = []

    def first_lookup_misses(session, *args, **kwargs):
        lookups.append(args)
        if len(lookups) == 1:
            return None
        return real_scalar(session, *args, **kwargs)

    mocker.patch.object(Session, "scalar", autospec=True, side_effect=first_lookup_misses)


def test_ensure_tolerates_concurrent_create(session_factory, db_session, mocker) -> None:
    store = ReputationStore(session_factory)
    _record_created_by_another_request(mocker, db_session, 77, 40)

    store.ensure(77)

    mocker.stopall()
    assert store.get(77) == 40
    assert len(db_session.scalars(select(UserReputation).where(UserReputation.user_id == 77)).all()) == 1


def test_award_tolerates_concurrent_create(session_factory, db_session, mocker) -> None:
    store = ReputationStore(session_factory)
    _record_created_by_another_request(mocker, db_session, 78, 40)

    assert store.award(78, 10) == 50


def test_concurrent_awards_are_not_lost(tmp_path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'awards.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    store = ReputationStore(sessionmaker(bind=engine, expire_on_commit=False))
    workers, rounds = 4, 25
    barrier = Barrier(workers)

    def award_many() -> None:
        barrier.wait()
        for _ in range(rounds):
            store.award(5, 1)

    try:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for future in [pool.submit(award_many) for _ in range(workers)]:
                future.result()

        record = store.record(5)
        assert record.points == workers * rounds
        assert record.level == level_for_points(workers * rounds)
    finally:
        engine.dispose()


def test_award_updates_points_and_level(session_factory) -> None:
    store = ReputationStore(session_factory)

    assert store.award(3, 150) == 150
    assert store.get(3) == 150
    assert store.record(3).level == "publisher"

    assert store.award(3, 400) == 550
    assert store.record(3).level == "steward"


def test_points_never_go_negative(session_factory) -> None:
    store = ReputationStore(session_factory)
    store.award(3, 20)

    assert store.award(3, -500) == 0
    store.set_points(3, -10)
    assert store.get(3) == 0


def test_listeners_run_after_each_mutation(session_factory) -> None:
    store = ReputationStore(session_factory)
    seen: list[tuple[int, int]] = []
    # The listener reads back through the store, so it must see committed data.
    store.add_listener(lambda user_id: seen.append((user_id, store.get(user_id))))

    store.award(5, 120)
    store.set_points(5, 30)
    store.delete(5)

    assert seen == [(5, 120), (5, 30), (5, 0)]


def test_removed_listener_is_not_called(session_factory) -> None:
    store = ReputationStore(session_factory)
    seen: list[int] = []
    listener = seen.append
    store.add_listener(listener)
    store.remove_listener(listener)

    store.award(5, 10)

    assert seen == []


def test_delete_removes_record(session_factory) -> None:
    store = ReputationStore(session_factory)
    store.award(9, 300)

    store.delete(9)

    assert store.record(9) is None
    assert store.get(9) == 0


def test_level_labels() -> None:
    assert level_for_points(0) == "contributor"
    assert level_for_points(99) == "contributor"
    assert level_for_points(100) == "publisher"
    assert level_for_points(200) == "curator"
    assert level_for_points(499) == "curator"
    assert level_for_points(500) == "steward"
