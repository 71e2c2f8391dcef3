from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.persistence import InMemoryPersistence

TEST_SETTINGS = Settings(storage_backend="memory", log_level="WARNING", log_json=False)


def iso_days_from_now(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@pytest.fixture
def persistence() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def spy(persistence: InMemoryPersistence) -> MagicMock:
    return MagicMock(wraps=persistence)


@pytest.fixture
def client(persistence: InMemoryPersistence):
    with TestClient(create_app(persistence=persistence, config=TEST_SETTINGS)) as test_client:
        yield test_client


@pytest.fixture
def spy_client(spy: MagicMock):
    with TestClient(create_app(persistence=spy, config=TEST_SETTINGS)) as test_client:
        yield test_client
