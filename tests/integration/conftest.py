"""Shared fixtures for integration tests.

Applications are built with ``create_app`` and exercised over
``httpx.ASGITransport``. Two flavours exist: ``client`` runs against a mocked
controller so tests can assert exactly what the HTTP layer passes down, and
``live_client`` runs against the reference controller over in-memory
storage.
"""

from collections.abc import AsyncGenerator
from typing import Any
from uuid import UUID

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pytest_mock import MockerFixture, MockType

from catalog.api.main import create_app
from catalog.core.config import LogConfig, ObservabilityConfig, Settings
from catalog.domain.controller import CatalogController
from catalog.infrastructure.memory import InMemoryRepository

USER_ID = "9b2f4c1e-6a7d-4e8b-9c3f-2d1a0b5e7f60"
VALID_TOKEN = "valid-token"
NON_UUID_CLAIMS_TOKEN = "legacy-token"


@pytest.fixture
def test_settings() -> Settings:
    """Settings with tracing and metric export disabled."""
    return Settings(
        environment="development",
        debug=False,
        log_config=LogConfig(log_level="WARNING", log_formatter_type="console"),
        observability_config=ObservabilityConfig(
            enable_tracing=False, enable_metrics=False, exporter_type="none"
        ),
    )


@pytest.fixture
def identity(fake_identity: Any) -> Any:
    """Identity provider knowing one valid token and one with non-UUID claims."""
    fake_identity.claims.update(
        {VALID_TOKEN: USER_ID, NON_UUID_CLAIMS_TOKEN: "user-42"}
    )
    return fake_identity


@pytest.fixture
def user_id() -> UUID:
    """Identifier the valid token resolves to."""
    return UUID(USER_ID)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header carrying the valid token."""
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def non_uuid_auth_headers() -> dict[str, str]:
    """Authorization header whose token resolves to a non-UUID identifier."""
    return {"Authorization": f"Bearer {NON_UUID_CLAIMS_TOKEN}"}


@pytest.fixture
def mock_controller(mocker: MockerFixture) -> MockType:
    """Controller double with async methods."""
    return mocker.AsyncMock(spec=CatalogController)


@pytest.fixture
def app(
    test_settings: Settings,
    mock_controller: MockType,
    identity: Any,
    metrics_sink: Any,
) -> FastAPI:
    """Application wired to the mocked controller."""
    return create_app(
        test_settings,
        controller=mock_controller,
        identity=identity,
        metrics=metrics_sink,
    )


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client for the mocked-controller application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def live_client(
    test_settings: Settings, identity: Any, metrics_sink: Any
) -> AsyncGenerator[AsyncClient]:
    """HTTP client for an application backed by in-memory storage."""
    application = create_app(
        test_settings,
        controller=CatalogController(InMemoryRepository()),
        identity=identity,
        metrics=metrics_sink,
    )
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
