"""Pytest fixtures for the task API and task store."""

import pytest
from fastapi.testclient import TestClient

from taskreload.core.config import Settings
from taskreload.core.database import Database
from taskreload.main import create_app
from taskreload.services.task import TaskStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    # Throwaway SQLite file per test; never read the developer's .env
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}",
        CORS_ORIGINS="http://testserver",
        _env_file=None,
    )


@pytest.fixture
def client(settings: Settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def database(settings: Settings):
    database = Database(settings.DATABASE_URL)
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
async def store(database: Database):
    async with database.session_maker() as session:
        yield TaskStore(session)


@pytest.fixture
async def other_store(database: Database):
    """A second store on its own session, to read what the first one committed."""
    async with database.session_maker() as session:
        yield TaskStore(session)


@pytest.fixture
def create_task(client: TestClient):
    def _create(**fields):
        fields.setdefault("title", "Write report")
        response = client.post("/api/tasks", json=fields)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
