"""
Pytest configuration and fixtures
"""

from collections.abc import AsyncGenerator
from datetime import date
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_event_bus
from app.core.database import Database, get_db
from app.core.events import TaskEventBus
from app.core.realtime import RealtimeBroadcaster
from app.main import app
from app.models.task import TaskCreate, TaskRead, Urgency
from app.services.project_store import ProjectStore
from app.services.rollover import RolloverSweep
from app.services.task_store import TaskStore


@pytest.fixture(scope="function")
async def database(tmp_path: Path) -> AsyncGenerator[Database]:
    """Fresh SQLite database file per test"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'tasks_test.db'}", echo=False)
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    async with database.session() as session:
        yield session


@pytest.fixture(scope="function")
def event_bus() -> TaskEventBus:
    return TaskEventBus()


@pytest.fixture(scope="function")
def published(event_bus: TaskEventBus) -> list:
    """Every event published on the test bus, in order"""
    events: list = []
    event_bus.subscribe(events.append)
    return events


@pytest.fixture(scope="function")
def task_store(db_session: AsyncSession, event_bus: TaskEventBus) -> TaskStore:
    return TaskStore(db_session, event_bus)


@pytest.fixture(scope="function")
def project_store(db_session: AsyncSession, event_bus: TaskEventBus) -> ProjectStore:
    return ProjectStore(db_session, event_bus)


@pytest.fixture(scope="function")
def make_task(task_store: TaskStore):
    """Create a task through the store with sensible defaults"""

    async def _make_task(
        title: str = "Task",
        *,
        urgency: Urgency = Urgency.P3,
        due_date: date | None = None,
        **fields,
    ) -> TaskRead:
        return await task_store.create(TaskCreate(title=title, urgency=urgency, due_date=due_date, **fields))

    return _make_task


@pytest.fixture(scope="function")
async def client(database: Database, event_bus: TaskEventBus) -> AsyncGenerator[AsyncClient]:
    """Create a test client wired to the test database and event bus"""

    async def override_get_db():
        async with database.session() as session:
            yield session

    broadcaster = RealtimeBroadcaster()
    broadcaster.attach(event_bus)
    app.state.database = database
    app.state.event_bus = event_bus
    app.state.broadcaster = broadcaster
    app.state.rollover_sweep = RolloverSweep(database, event_bus)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    broadcaster.detach()
