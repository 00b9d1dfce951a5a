"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of memeplace.api.auth which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from memeplace.config import MemeplaceConfig  # noqa: E402
from memeplace.database.engine import enable_sqlite_savepoints  # noqa: E402
from memeplace.database.models import (  # noqa: E402
    Base,
    Community,
    Meme,
    Template,
    User,
)
from memeplace.engine.ranking import hot_score  # noqa: E402

BASE_TIME = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all memeplace tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def fk_engine() -> Engine:
    """Like ``db_engine`` but with SQLite foreign keys enforced.

    PostgreSQL always checks them; SQLite only does after
    ``PRAGMA foreign_keys=ON`` on each connection.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)

    @event.listens_for(engine, "connect")
    def _enforce_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def test_config() -> MemeplaceConfig:
    return MemeplaceConfig(site_name="meme.test", api_port=0, query_timeout_seconds=5.0)


# ---------------------------------------------------------------------------
# Row factories: each returns the new primary key
# ---------------------------------------------------------------------------
@pytest.fixture
def make_user(db_engine):
    def _make(username: str = "alice") -> int:
        with Session(db_engine) as session:
            user = User(username=username, email=f"{username}@example.com")
            session.add(user)
            session.commit()
            return user.id
    return _make


@pytest.fixture
def make_community(db_engine):
    def _make(
        name: str = "gaming",
        *,
        creator_id: int | None = None,
        favourites_count: int = 0,
        created_at: datetime | None = None,
    ) -> int:
        with Session(db_engine) as session:
            community = Community(
                name=name,
                title=name.title(),
                creator_id=creator_id,
                favourites_count=favourites_count,
                created_at=created_at or BASE_TIME,
            )
            session.add(community)
            session.commit()
            return community.id
    return _make


@pytest.fixture
def make_meme(db_engine):
    def _make(
        link: str,
        *,
        community_id: int | None = None,
        net_vote: int = 0,
        created_at: datetime | None = None,
        template_id: int | None = None,
        creator_id: int | None = None,
        deleted: bool = False,
    ) -> int:
        created_at = created_at or BASE_TIME
        with Session(db_engine) as session:
            meme = Meme(
                title=link.rsplit("/", 1)[-1],
                link=link,
                net_vote=net_vote,
                hot_score=hot_score(net_vote, created_at),
                community_id=community_id,
                template_id=template_id,
                creator_id=creator_id,
                created_at=created_at,
                deleted_at=created_at + timedelta(minutes=1) if deleted else None,
            )
            session.add(meme)
            session.commit()
            return meme.id
    return _make


@pytest.fixture
def make_template(db_engine):
    def _make(
        name: str = "drake",
        *,
        community_id: int | None = None,
        created_at: datetime | None = None,
    ) -> int:
        with Session(db_engine) as session:
            template = Template(
                name=name,
                image_url=f"https://img.example.com/{name}.png",
                community_id=community_id,
                created_at=created_at or BASE_TIME,
            )
            session.add(template)
            session.commit()
            return template.id
    return _make


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture
def client(db_engine, test_config):
    """FastAPI TestClient bound to the in-memory database."""
    from fastapi.testclient import TestClient

    from memeplace.api.deps import get_config, get_engine
    from memeplace.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: test_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    """Factory: ``auth_header(user_id)`` → Authorization header dict."""
    from memeplace.api import auth

    def _header(user_id: int, username: str = "alice") -> dict:
        return {"Authorization": f"Bearer {auth.issue_token(user_id, username)}"}
    return _header
