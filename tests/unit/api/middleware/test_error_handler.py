"""Unit tests for application-level exception handlers."""

from collections.abc import Callable

import orjson
import pytest
from pytest_mock import MockerFixture
from starlette.exceptions import HTTPException
from starlette.requests import Request

from catalog.api.middleware.error_handler import (
    catalog_error_handler,
    generic_exception_handler,
    http_exception_handler,
    status_for,
)
from catalog.core.exceptions import (
    AlreadyExistsError,
    DecodeError,
    InternalError,
    InvalidStateError,
    MethodNotAllowedError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


@pytest.mark.unit
class TestStatusFor:
    """Test exception to status mapping."""

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (DecodeError("bad json"), 400),
            (ValidationError("bad field"), 400),
            (UnauthorizedError("no"), 401),
            (NotFoundError("missing"), 404),
            (MethodNotAllowedError(), 405),
            (AlreadyExistsError("dup"), 409),
            (InvalidStateError("cancelled"), 409),
            (InternalError(), 500),
            (RuntimeError("boom"), 500),
        ],
    )
    def test_mapping(self, exc: Exception, expected: int) -> None:
        """Test each error family maps to its status."""
        assert status_for(exc) == expected


@pytest.mark.unit
class TestHandlers:
    """Test the rendered error envelopes."""

    @pytest.mark.timeout(5)
    async def test_client_error_keeps_message(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test 4xx catalog errors carry their own text."""
        response = await catalog_error_handler(
            make_request(), NotFoundError("category 'x' not found")
        )

        assert response.status_code == 404
        assert orjson.loads(response.body) == {
            "status": 404,
            "error": "category 'x' not found",
        }

    @pytest.mark.timeout(5)
    async def test_server_error_hides_message(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test 5xx catalog errors only send the generic marker."""
        response = await catalog_error_handler(
            make_request(), InternalError("pool exhausted on db-2")
        )

        assert response.status_code == 500
        assert orjson.loads(response.body)["error"] == "internal error"

    @pytest.mark.timeout(5)
    async def test_catalog_handler_rejects_other_types(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test the handler refuses exceptions outside the hierarchy."""
        with pytest.raises(TypeError):
            await catalog_error_handler(make_request(), RuntimeError("boom"))

    @pytest.mark.timeout(5)
    @pytest.mark.parametrize(
        ("exc", "level"),
        [
            (NotFoundError("category 'x' not found"), "WARNING"),
            (UnauthorizedError("invalid token"), "ERROR"),
            (InternalError(), "ERROR"),
        ],
    )
    async def test_log_level_follows_severity(
        self,
        exc: Exception,
        level: str,
        mocker: MockerFixture,
        make_request: Callable[..., Request],
    ) -> None:
        """Test expected errors log as warnings and severe ones as errors."""
        # Arrange
        mock_logger = mocker.patch("catalog.api.middleware.error_handler.logger")

        # Act
        await catalog_error_handler(make_request(), exc)

        # Assert
        mock_logger.log.assert_called_once()
        assert mock_logger.log.call_args.args[0] == level

    @pytest.mark.timeout(5)
    async def test_http_exception(self, make_request: Callable[..., Request]) -> None:
        """Test framework HTTP errors use the error envelope."""
        response = await http_exception_handler(
            make_request(path="/nowhere"), HTTPException(404)
        )

        assert orjson.loads(response.body) == {"status": 404, "error": "Not Found"}

    @pytest.mark.timeout(5)
    async def test_generic_exception(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test unknown exceptions become the 500 marker."""
        response = await generic_exception_handler(
            make_request(), RuntimeError("secret detail")
        )

        assert response.status_code == 500
        assert orjson.loads(response.body) == {
            "status": 500,
            "error": "internal error",
        }
