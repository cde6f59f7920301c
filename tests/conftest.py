# tests/conftest.py
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import app.api.dependencies as _deps
from app.core.config import Settings, get_settings
from app.core.rate_limit import limiter
from app.main import app


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        api_keys={"test-key-alice": "user_alice", "test-key-bob": "user_bob"},
        admin_user_ids={"user_alice"},
        database_url=None,
        cache_ttl_seconds=900,
        cache_max_size=100,
    )


def _reset_singletons() -> None:
    _deps._repository = None
    _deps._recommendation_cache = None
    _deps.get_in_flight_requests.cache_clear()
    limiter.reset()


def _client_for(settings: Settings) -> Generator[TestClient, None, None]:
    # Jeder Test startet mit leerem Repository, leerem Cache und frischem Rate Limit
    _reset_singletons()
    # Depends()-Callbacks erreicht man nur über dependency_overrides, nicht über patch
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        with patch("app.core.config.get_settings", return_value=settings), TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_settings, None)
        _reset_singletons()


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    yield from _client_for(test_settings)


@pytest.fixture
def sqlite_client(test_settings: Settings, tmp_path: Path) -> Generator[TestClient, None, None]:
    settings = test_settings.model_copy(
        update={"database_url": f"sqlite+aiosqlite:///{tmp_path / 'dashboard.db'}"}
    )
    yield from _client_for(settings)


@pytest.fixture
def limited_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    settings = test_settings.model_copy(
        update={"rate_limit_requests": 2, "rate_limit_window_seconds": 60}
    )
    yield from _client_for(settings)


@pytest.fixture
def alice_headers() -> dict:
    return {"X-API-Key": "test-key-alice"}


@pytest.fixture
def bob_headers() -> dict:
    return {"X-API-Key": "test-key-bob"}
