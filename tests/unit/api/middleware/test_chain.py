"""Unit tests for per-route middleware chains and their interceptors."""

from collections.abc import Callable
from typing import Any

import orjson
import pytest
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from catalog.api.middleware.auth import AuthMiddleware, bearer_token
from catalog.api.middleware.chain import Chain, Endpoint
from catalog.api.middleware.common import MethodNotAllowed, RecoverPanic
from catalog.core.context import RequestContext
from catalog.core.exceptions import InternalError, MissingContextValueError


class Recorder:
    """Middleware appending its name to a shared trace on the way in and out."""

    def __init__(self, name: str, trace: list[str]) -> None:
        self.name = name
        self.trace = trace

    async def __call__(self, request: Request, call_next: Endpoint) -> Response:
        self.trace.append(f"{self.name}:in")
        response = await call_next(request)
        self.trace.append(f"{self.name}:out")
        return response


class ShortCircuit:
    """Middleware answering without calling the rest of the chain."""

    async def __call__(self, request: Request, call_next: Endpoint) -> Response:
        return PlainTextResponse("stopped", status_code=418)


def _body(response: Response) -> dict[str, object]:
    return orjson.loads(response.body)


@pytest.mark.unit
class TestChain:
    """Test chain composition."""

    async def test_first_middleware_is_outermost(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test interceptors run in listed order around the endpoint."""
        # Arrange
        trace: list[str] = []

        async def endpoint(request: Request) -> Response:
            trace.append("endpoint")
            return PlainTextResponse("ok")

        handler = Chain(Recorder("a", trace), Recorder("b", trace)).then(endpoint)

        # Act
        await handler(make_request())

        # Assert
        assert trace == ["a:in", "b:in", "endpoint", "b:out", "a:out"]

    async def test_short_circuit_skips_endpoint(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test a middleware may answer without reaching the endpoint."""
        trace: list[str] = []

        async def endpoint(request: Request) -> Response:
            trace.append("endpoint")
            return PlainTextResponse("ok")

        handler = Chain(Recorder("a", trace), ShortCircuit()).then(endpoint)

        response = await handler(make_request())

        assert response.status_code == 418
        assert trace == ["a:in", "a:out"]

    async def test_empty_chain_returns_endpoint(self) -> None:
        """Test an empty chain adds no wrapping."""

        async def endpoint(request: Request) -> Response:
            return PlainTextResponse("ok")

        assert Chain().then(endpoint) is endpoint

    def test_append_returns_new_chain(self) -> None:
        """Test appending leaves the original chain untouched."""
        recover = RecoverPanic()
        base = Chain(recover)

        extended = base.append(MethodNotAllowed("GET"))

        assert len(base) == 1
        assert len(extended) == 2
        assert list(extended)[0] is recover

    def test_repr_lists_middleware(self) -> None:
        """Test the representation names each interceptor type."""
        chain = Chain(RecoverPanic(), MethodNotAllowed("GET"))

        assert repr(chain) == "Chain(RecoverPanic, MethodNotAllowed)"


@pytest.mark.unit
class TestRecoverPanic:
    """Test the panic recovery interceptor."""

    async def test_exception_becomes_internal_error(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test an escaping exception yields the 500 envelope."""

        async def endpoint(request: Request) -> Response:
            raise RuntimeError("database password is hunter2")

        response = await Chain(RecoverPanic()).then(endpoint)(make_request())

        assert response.status_code == 500
        assert _body(response) == {"status": 500, "error": "internal error"}

    async def test_passes_through_responses(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test normal responses are returned unchanged."""
        ok = PlainTextResponse("ok")

        async def endpoint(request: Request) -> Response:
            return ok

        assert await Chain(RecoverPanic()).then(endpoint)(make_request()) is ok


@pytest.mark.unit
class TestMethodNotAllowed:
    """Test the method filter."""

    @pytest.mark.parametrize("method", ["POST", "PATCH", "DELETE"])
    async def test_rejects_unlisted_methods(
        self, method: str, make_request: Callable[..., Request]
    ) -> None:
        """Test methods outside the allowed set get the 405 envelope."""

        async def endpoint(request: Request) -> Response:
            raise AssertionError("endpoint must not run")

        handler = Chain(MethodNotAllowed("get", "put")).then(endpoint)

        response = await handler(make_request(method=method))

        assert response.status_code == 405
        assert _body(response) == {"status": 405, "error": "method not allowed"}

    async def test_allows_listed_methods(
        self, make_request: Callable[..., Request]
    ) -> None:
        """Test allowed methods reach the endpoint."""

        async def endpoint(request: Request) -> Response:
            return PlainTextResponse("ok")

        handler = Chain(MethodNotAllowed("get", "put")).then(endpoint)

        response = await handler(make_request(method="PUT"))

        assert response.status_code == 200


@pytest.mark.unit
class TestBearerToken:
    """Test bearer token extraction."""

    @pytest.mark.parametrize(
        ("headers", "expected"),
        [
            ({}, None),
            ({"Authorization": "Basic abc"}, None),
            ({"Authorization": "Bearer abc"}, "abc"),
            ({"Authorization": "Bearer "}, ""),
        ],
    )
    def test_extraction(
        self,
        headers: dict[str, str],
        expected: str | None,
        make_request: Callable[..., Request],
    ) -> None:
        """Test the token is only returned for the bearer scheme."""
        assert bearer_token(make_request(headers=headers)) == expected


@pytest.mark.unit
class TestAuthMiddleware:
    """Test token verification and identity binding."""

    async def test_binds_user_id_for_the_handler(
        self, fake_identity: Any, make_request: Callable[..., Request]
    ) -> None:
        """Test the resolved identifier is visible inside the handler only."""
        # Arrange
        seen: list[str] = []

        async def endpoint(request: Request) -> Response:
            seen.append(RequestContext.require_user_id())
            return PlainTextResponse("ok")

        fake_identity.claims["tok"] = "user-1"
        auth = AuthMiddleware(fake_identity)
        request = make_request(headers={"Authorization": "Bearer tok"})

        # Act
        response = await Chain(auth).then(endpoint)(request)

        # Assert
        assert response.status_code == 200
        assert seen == ["user-1"]
        with pytest.raises(MissingContextValueError):
            RequestContext.require_user_id()

    @pytest.mark.parametrize(
        ("headers", "error"),
        [
            ({}, "missing bearer token"),
            ({"Authorization": "Bearer "}, "missing bearer token"),
            ({"Authorization": "Token tok"}, "missing bearer token"),
            ({"Authorization": "Bearer unknown"}, "invalid token"),
            ({"Authorization": "Bearer empty"}, "invalid token"),
        ],
    )
    async def test_rejections(
        self,
        headers: dict[str, str],
        error: str,
        fake_identity: Any,
        make_request: Callable[..., Request],
    ) -> None:
        """Test missing, unknown and empty identities are unauthorized."""

        async def endpoint(request: Request) -> Response:
            raise AssertionError("endpoint must not run")

        fake_identity.claims["empty"] = ""
        auth = AuthMiddleware(fake_identity)

        response = await Chain(auth).then(endpoint)(make_request(headers=headers))

        assert response.status_code == 401
        assert _body(response) == {"status": 401, "error": error}

    async def test_provider_failure_is_internal(
        self, fake_identity: Any, make_request: Callable[..., Request]
    ) -> None:
        """Test identity provider outages are not reported as 401."""
        identity = fake_identity

        async def failing_parse(token: str) -> str:
            raise InternalError(context={"path": "/api/sso/claims"})

        identity.parse_claims = failing_parse  # type: ignore[method-assign]

        async def endpoint(request: Request) -> Response:
            raise AssertionError("endpoint must not run")

        request = make_request(headers={"Authorization": "Bearer tok"})
        response = await Chain(AuthMiddleware(identity)).then(endpoint)(request)

        assert response.status_code == 500
        assert _body(response) == {"status": 500, "error": "internal error"}
