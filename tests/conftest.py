"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite async database, file store, fast streaming settings,
review model factories and a scripted agent engine
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import pytest

from prd_reviewer.models.agents import AgentModels
from prd_reviewer.models.engine_events import EngineEvent


class ScriptedEngine:
    """Agent engine double replaying a fixed list of engine events."""

    def __init__(
        self,
        events: list[EngineEvent],
        models: AgentModels | None = None,
        error: Exception | None = None,
    ) -> None:
        self.events = events
        self._models = models or AgentModels()
        self.error = error
        self.requests = []

    @property
    def models(self) -> AgentModels:
        return self._models

    async def stream(self, request) -> AsyncIterator[EngineEvent]:
        self.requests.append(request)
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def async_engine(tmp_path: Path):
    """
    File-backed SQLite async engine with all tables created.

    NullPool opens a fresh connection per checkout, so sessions created on
    other event loops never share one.
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import NullPool

    from prd_reviewer.boundary.db.create_tables import create_all_tables, drop_all_tables

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await create_all_tables(engine)

    yield engine

    await drop_all_tables(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    from prd_reviewer.boundary.db.connection import create_session_factory

    return create_session_factory(async_engine)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Async session on the test database.

    Yields:
        AsyncSession: Session rolled back after the test
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def file_store(tmp_path: Path):
    from prd_reviewer.boundary.storage.file_store import ReviewFileStore

    store = ReviewFileStore(tmp_path / "data")
    store.ensure_dirs()
    return store


@pytest.fixture
def streaming_settings():
    """Streaming settings with timings shrunk for tests."""
    from prd_reviewer.configs.streaming import StreamingSettings

    return StreamingSettings(
        keepalive_interval_seconds=0.05,
        attach_poll_interval_seconds=0.01,
        attach_timeout_seconds=0.2,
        teardown_delay_seconds=0.0,
        max_listeners=5,
        activity_throttle_seconds=1.0,
        usage_emit_interval_seconds=5.0,
    )


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """An existing directory usable as a repository path."""
    path = tmp_path / "repo"
    path.mkdir()
    (path / "main.py").write_text("print('hello')\n")
    return path


@pytest.fixture
def review_id() -> uuid.UUID:
    """Generate a test review ID."""
    return uuid.uuid4()


@pytest.fixture
def make_review_model():
    """Factory for detached ReviewModel instances."""
    from prd_reviewer.boundary.db.models.review_model import ReviewModel, ReviewStatus

    def _make(
        review_id: uuid.UUID | None = None,
        status: ReviewStatus = ReviewStatus.PENDING,
        error: str | None = None,
        repo_paths: list[str] | None = None,
    ) -> ReviewModel:
        now = datetime.now(timezone.utc)
        review = ReviewModel()
        review.id = review_id or uuid.uuid4()
        review.file_name = "checkout_prd.md"
        review.original_name = "checkout prd.md"
        review.repo_paths = repo_paths or ["/srv/shop"]
        review.status = status
        review.error = error
        review.usage = None
        review.completed_at = now if status == ReviewStatus.COMPLETED else None
        review.supplementary_files = []
        review.additional_context = None
        review.web_search_enabled = False
        review.created_at = now
        review.updated_at = now
        return review

    return _make


@pytest.fixture
def make_engine():
    """Factory for ScriptedEngine doubles."""
    return ScriptedEngine
