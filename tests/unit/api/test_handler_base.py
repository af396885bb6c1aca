"""Unit tests for the shared handler plumbing."""

from collections.abc import Callable
from typing import Any

import orjson
import pytest
from pytest_mock import MockerFixture
from starlette.requests import Request

from catalog.api.handlers.base import BaseHandler, Outcome, decode_body
from catalog.api.handlers.order import parse_order_id
from catalog.core.config import PaginationConfig
from catalog.core.exceptions import DecodeError, NotFoundError, ValidationError
from catalog.domain.models import Category


def _json_request(make_request: Callable[..., Request], body: bytes) -> Request:
    request = make_request(method="POST", headers={"Content-Type": "application/json"})
    request._body = body  # noqa: SLF001 - preloaded body for a receive-less request
    return request


@pytest.mark.unit
class TestOutcome:
    """Test status settlement and envelope rendering."""

    def test_fail_exposes_client_errors(self) -> None:
        """Test 4xx failures send the error text."""
        outcome = Outcome("category.getCategory.handler", 200)

        response = outcome.fail(404, NotFoundError("category 'x' not found"), "nf")

        assert outcome.status_code == 404
        assert orjson.loads(response.body) == {
            "status": 404,
            "error": "category 'x' not found",
        }

    def test_fail_hides_server_errors(self) -> None:
        """Test 5xx failures send the generic marker."""
        outcome = Outcome("op", 200)

        response = outcome.fail(500, RuntimeError("dsn=postgres://u:p@db"), "boom")

        assert orjson.loads(response.body)["error"] == "internal error"

    def test_fail_can_hide_client_errors(self) -> None:
        """Test expose=False masks the text of a 4xx failure."""
        outcome = Outcome("op", 201)

        response = outcome.fail(400, ValueError("bad uuid"), "parse", expose=False)

        assert response.status_code == 400
        assert orjson.loads(response.body) == {"status": 400, "error": "internal error"}

    def test_succeed_can_override_transport_status(self) -> None:
        """Test the wire status may differ from the observed status."""
        outcome = Outcome("op", 204)

        response = outcome.succeed("OK", status_code=200)

        assert response.status_code == 200
        assert outcome.status_code == 204
        assert orjson.loads(response.body) == {"status": 200, "data": "OK"}


@pytest.mark.unit
class TestObserve:
    """Test per-request metrics recording."""

    def _handler(self, mocker: MockerFixture, sink: Any) -> BaseHandler:
        return BaseHandler(mocker.AsyncMock(), sink, PaginationConfig())

    def test_records_settled_status(
        self, mocker: MockerFixture, metrics_sink: Any
    ) -> None:
        """Test one observation carries the final status."""
        handler = self._handler(mocker, metrics_sink)

        with handler.observe("op.one", 200) as outcome:
            outcome.fail(404, NotFoundError("missing"), "nf")

        assert metrics_sink.recorded == [("op.one", 404)]

    def test_records_default_status(
        self, mocker: MockerFixture, metrics_sink: Any
    ) -> None:
        """Test the initial status is recorded when nothing fails."""
        handler = self._handler(mocker, metrics_sink)

        with handler.observe("op.two", 201):
            pass

        assert metrics_sink.recorded == [("op.two", 201)]

    def test_records_500_when_exception_escapes(
        self, mocker: MockerFixture, metrics_sink: Any
    ) -> None:
        """Test an escaping exception is recorded once as a 500."""
        handler = self._handler(mocker, metrics_sink)

        with pytest.raises(RuntimeError), handler.observe("op.three", 200):
            raise RuntimeError("boom")

        assert metrics_sink.recorded == [("op.three", 500)]
        assert metrics_sink.observations[0][0] >= 0


@pytest.mark.unit
class TestDecodeBody:
    """Test JSON body decoding."""

    async def test_valid_body(self, make_request: Callable[..., Request]) -> None:
        """Test a well-formed body becomes a model."""
        request = _json_request(make_request, b'{"slug": "phones", "name": "Phones"}')

        category = await decode_body(request, Category)

        assert category.slug == "phones"

    @pytest.mark.parametrize(
        "body", [b"", b"{not json", b'{"slug": 5}', b'{"filters": "x"}']
    )
    async def test_invalid_body(
        self, body: bytes, make_request: Callable[..., Request]
    ) -> None:
        """Test malformed or mistyped bodies raise DecodeError."""
        request = _json_request(make_request, body)

        with pytest.raises(DecodeError, match="invalid category body"):
            await decode_body(request, Category)


@pytest.mark.unit
class TestParseOrderId:
    """Test order id extraction from the path."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/api/order/1", 1),
            ("/api/order/0042", 42),
            ("/api/order/18446744073709551615", 2**64 - 1),
        ],
    )
    def test_valid(self, path: str, expected: int) -> None:
        """Test plain unsigned integers are accepted."""
        assert parse_order_id(path) == expected

    @pytest.mark.parametrize(
        "suffix",
        [
            "",
            "abc",
            "-1",
            "+1",
            "1_000",
            " 1",
            "1.0",
            "١",
            "18446744073709551616",
            "9" * 5000,
            "1/extra",
        ],
    )
    def test_invalid(self, suffix: str) -> None:
        """Test anything but an in-range digit string is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            parse_order_id(f"/api/order/{suffix}")

        assert exc_info.value.context["field"] == "id"
