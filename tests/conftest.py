"""Root conftest.py for the catalog test suite.

This file contains project-wide fixtures, test doubles for the external
collaborators and pytest configuration.
"""

import asyncio
from collections.abc import Callable, Generator
from uuid import uuid4

import pytest
from starlette.requests import Request

from catalog.core.config import get_settings
from catalog.core.context import RequestContext
from catalog.core.error_context import _get_sensitive_fields
from catalog.core.exceptions import UnauthorizedError, ValidationError


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


class FakeIdentityProvider:
    """In-process identity provider recording every call.

    Args:
        claims: Token to user identifier mapping; unknown tokens are rejected.
    """

    def __init__(self, claims: dict[str, str] | None = None) -> None:
        self.claims = claims or {}
        self.parsed_tokens: list[str] = []
        self.created_users: list[tuple[str, str, str]] = []
        self.issued_ids: list[str] = []
        self.create_error: Exception | None = None
        self.next_user_id: str | None = None

    async def parse_claims(self, token: str) -> str:
        self.parsed_tokens.append(token)
        await asyncio.sleep(0)
        if token not in self.claims:
            raise UnauthorizedError("invalid token")
        return self.claims[token]

    async def create_user(self, name: str, email: str, password: str) -> str:
        self.created_users.append((name, email, password))
        await asyncio.sleep(0)
        if self.create_error is not None:
            raise self.create_error
        user_id = self.next_user_id or str(uuid4())
        self.issued_ids.append(user_id)
        return user_id


class RecordingMetricsSink:
    """MetricsSink keeping every observation in memory."""

    def __init__(self) -> None:
        self.observations: list[tuple[float, int, str]] = []

    def observe_request(self, duration: float, status: int, op: str) -> None:
        self.observations.append((duration, status, op))

    @property
    def recorded(self) -> list[tuple[str, int]]:
        """Observed (op, status) pairs in arrival order."""
        return [(op, status) for _, status, op in self.observations]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Clear cached settings before and after each test."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Keep request-scoped values from leaking between tests."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture
def fake_identity() -> FakeIdentityProvider:
    """Provide an identity provider with no known tokens."""
    return FakeIdentityProvider()


@pytest.fixture
def metrics_sink() -> RecordingMetricsSink:
    """Provide a metrics sink that records observations."""
    return RecordingMetricsSink()


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build bare Starlette requests for middleware and handler tests."""

    def _make(
        method: str = "GET",
        path: str = "/",
        headers: dict[str, str] | None = None,
        query_string: str = "",
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "root_path": "",
            "scheme": "http",
            "server": ("test", 80),
            "query_string": query_string.encode(),
            "headers": [
                (key.lower().encode(), value.encode())
                for key, value in (headers or {}).items()
            ],
        }
        return Request(scope)

    return _make


@pytest.fixture
def identity_validation_error() -> ValidationError:
    """Error returned by the identity provider for a rejected sign-up."""
    return ValidationError("email already registered with another provider")
