# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from bizdir_moderation.core.security import create_access_token
from bizdir_moderation.db.session import Base
from bizdir_moderation.main import app as fastapi_app
from bizdir_moderation.models import Listing, Review, Tag
from bizdir_moderation.models.role import ROLE_ADMIN, ROLE_MODERATOR
from bizdir_moderation.services.components import ModerationComponents, set_components
from bizdir_moderation.services.identity import StaticIdentity
from bizdir_moderation.services.moderation import ModerationService

TEST_DB_URL = "sqlite://"

MODERATOR_ID = 900
ADMIN_ID = 901
MEMBER_ID = 100
OTHER_MEMBER_ID = 101

_CONTENT_IDS = count(1000)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def components(session_factory: sessionmaker[Session]) -> Iterator[ModerationComponents]:
    """Build the shared collaborators over the test engine and install them."""
    built = ModerationComponents.build(session_factory)
    set_components(built)
    try:
        yield built
    finally:
        set_components(None)


@pytest.fixture()
def recorded_events(components: ModerationComponents) -> list[tuple[str, dict[str, Any]]]:
    """Capture every event emitted through the shared dispatcher."""
    from bizdir_moderation.services.events import CONTENT_MODERATED, CONTENT_QUEUED

    events: list[tuple[str, dict[str, Any]]] = []
    for name in (CONTENT_QUEUED, CONTENT_MODERATED):
        components.events.subscribe(name, lambda payload, name=name: events.append((name, payload)))
    return events


@pytest.fixture()
def moderator(components: ModerationComponents) -> int:
    components.roles.assign_role(MODERATOR_ID, ROLE_MODERATOR)
    return MODERATOR_ID


@pytest.fixture()
def admin(components: ModerationComponents) -> int:
    components.roles.assign_role(ADMIN_ID, ROLE_ADMIN)
    return ADMIN_ID


@pytest.fixture()
def service_for(components: ModerationComponents) -> Callable[[int | None], ModerationService]:
    """Return a factory building the orchestrator for a given caller."""

    def _build(user_id: int | None) -> ModerationService:
        return components.moderation_service(StaticIdentity(user_id))

    return _build


@pytest.fixture()
def moderation_service(service_for, moderator: int) -> ModerationService:
    return service_for(moderator)


@pytest.fixture()
def make_review(db_session: Session) -> Callable[..., Review]:
    def _make(review_id: int | None = None, user_id: int = MEMBER_ID, status: str = "pending") -> Review:
        review = Review(
            id=review_id if review_id is not None else next(_CONTENT_IDS),
            business_id=1,
            user_id=user_id,
            rating=4,
            comment="Friendly staff",
            status=status,
        )
        db_session.add(review)
        db_session.commit()
        return review

    return _make


@pytest.fixture()
def make_listing(db_session: Session) -> Callable[..., Listing]:
    def _make(listing_id: int | None = None, owner_id: int = MEMBER_ID, status: str = "draft") -> Listing:
        listing = Listing(
            id=listing_id if listing_id is not None else next(_CONTENT_IDS),
            owner_id=owner_id,
            name="Corner Bakery",
            description="Bread and pastries",
            status=status,
        )
        db_session.add(listing)
        db_session.commit()
        return listing

    return _make


@pytest.fixture()
def make_tag(db_session: Session) -> Callable[..., Tag]:
    def _make(tag_id: int | None = None, user_id: int = MEMBER_ID, tag: str = "bakery") -> Tag:
        row = Tag(
            id=tag_id if tag_id is not None else next(_CONTENT_IDS),
            business_id=1,
            user_id=user_id,
            tag=tag,
            weight=1.0,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _make


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, components: ModerationComponents) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def auth_headers(user_id: int) -> dict[str, str]:
    """Return authorization headers for ``user_id``."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
