"""Shared fixtures for in-process API tests"""
from typing import Dict, Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from habit_quest.api.middleware import limiter
from habit_quest.api.server import create_api_application
from habit_quest.services.container import init_container
from habit_quest.storage.kv_store import InMemoryStore


TEST_API_KEY = "test_key_123"


@pytest.fixture
def leaderboard_data():
    """Entries returned by the leaderboard feed"""
    return [{"name": "ana", "xp": 500}, {"name": "bo", "xp": 5}]


@pytest.fixture
def container(leaderboard_data):
    async def feed():
        return leaderboard_data

    return init_container(store=InMemoryStore(), leaderboard_feed=feed)


@pytest.fixture
def api_client(monkeypatch, container) -> Generator[TestClient, None, None]:
    """TestClient over a fresh in-memory container, rate limiting off"""
    monkeypatch.setenv("API_KEYS", TEST_API_KEY)
    monkeypatch.setattr(limiter, "enabled", False)

    app = create_api_application(container)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Valid authentication headers"""
    return {"Authorization": f"Bearer {TEST_API_KEY}"}


@pytest.fixture
def unique_user_id() -> str:
    """Generate unique user ID for test isolation"""
    return f"test_user_{uuid4().hex[:12]}"
