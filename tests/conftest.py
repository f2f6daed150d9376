"""Pytest fixtures for the Task Manager tests."""

import mongomock
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport

from taskboard.client.api import TaskAPIClient
from taskboard.client.state import TaskStateStore
from taskboard.main import create_app
from taskboard.store import InMemoryTaskStore, MongoTaskStore


@pytest.fixture
def store() -> InMemoryTaskStore:
    """A fresh in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture
def mongo_store() -> MongoTaskStore:
    """A Mongo-backed store on a mocked collection."""
    client = mongomock.MongoClient()
    return MongoTaskStore(client["task_manager"]["tasks"])


@pytest.fixture(params=["memory", "mongo"])
def any_store(request, store, mongo_store):
    """Each storage backend in turn."""
    return store if request.param == "memory" else mongo_store


@pytest.fixture
def client(store) -> TestClient:
    """Create a test client for the API."""
    return TestClient(create_app(store=store))


@pytest_asyncio.fixture
async def api(store):
    """HTTP client for the API, talking to the app in-process."""
    transport = ASGITransport(app=create_app(store=store))
    async with TaskAPIClient("http://test/api", transport=transport) as api_client:
        yield api_client


@pytest_asyncio.fixture
async def state_store(api) -> TaskStateStore:
    return TaskStateStore(api)
