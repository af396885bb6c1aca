"""Unit tests for request-scoped context values."""

import asyncio
import re

import pytest

from catalog.core.context import (
    RequestContext,
    generate_correlation_id,
    generate_request_id,
)
from catalog.core.exceptions import MissingContextValueError


@pytest.mark.unit
class TestRequestContext:
    """Test RequestContext accessors."""

    def test_correlation_id_round_trip(self) -> None:
        """Test a correlation ID can be set and read back."""
        RequestContext.set_correlation_id("corr-1")

        assert RequestContext.get_correlation_id() == "corr-1"

    def test_require_user_id_without_binding(self) -> None:
        """Test reading an unbound user id raises a typed error."""
        with pytest.raises(MissingContextValueError) as exc_info:
            RequestContext.require_user_id()

        assert exc_info.value.key == "user_id"

    def test_bind_user_id_is_scoped(self) -> None:
        """Test the user id is visible inside the block only."""
        with RequestContext.bind_user_id("user-1"):
            assert RequestContext.require_user_id() == "user-1"

        with pytest.raises(MissingContextValueError):
            RequestContext.require_user_id()

    def test_bind_user_id_restores_on_error(self) -> None:
        """Test the previous value is restored when the block raises."""
        with (
            pytest.raises(RuntimeError),
            RequestContext.bind_user_id("user-1"),
        ):
            raise RuntimeError

        with pytest.raises(MissingContextValueError):
            RequestContext.require_user_id()

    def test_nested_bindings(self) -> None:
        """Test an inner binding restores the outer one on exit."""
        with RequestContext.bind_user_id("outer"):
            with RequestContext.bind_user_id("inner"):
                assert RequestContext.require_user_id() == "inner"
            assert RequestContext.require_user_id() == "outer"

    async def test_tasks_are_isolated(self) -> None:
        """Test concurrent tasks never observe each other's user id."""

        async def worker(user_id: str) -> str:
            with RequestContext.bind_user_id(user_id):
                await asyncio.sleep(0)
                return RequestContext.require_user_id()

        results = await asyncio.gather(*(worker(f"user-{i}") for i in range(20)))

        assert results == [f"user-{i}" for i in range(20)]

    def test_clear(self) -> None:
        """Test clear resets every value."""
        RequestContext.set_correlation_id("corr-1")

        RequestContext.clear()

        assert RequestContext.get_correlation_id() is None


@pytest.mark.unit
def test_generated_ids_have_expected_shape() -> None:
    """Test generated identifiers are unique and well formed."""
    uuid_pattern = r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}"

    assert re.fullmatch(uuid_pattern, generate_correlation_id())
    assert re.fullmatch(f"req-{uuid_pattern}", generate_request_id())
    assert generate_correlation_id() != generate_correlation_id()
