"""Path router that hands every HTTP method to our own dispatch.

Starlette rejects unlisted methods before any application code runs. The
catalog API needs control over that outcome (the 405 envelope, and manual
method switching on order paths), so routes are registered accepting any
method and dispatch happens here.

Routes match in registration order. Literal paths must be registered before
parameterized paths that would also match them, e.g. ``/api/category/search``
before ``/api/category/{slug}``.
"""

from collections.abc import Mapping

from fastapi import FastAPI
from loguru import logger
from starlette import status
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route, request_response
from starlette.types import Receive, Scope, Send

from catalog.api.middleware.chain import Endpoint
from catalog.api.utils.responses import err_response
from catalog.core.exceptions import MethodNotAllowedError


def method_switch(endpoints: Mapping[str, Endpoint]) -> Endpoint:
    """Build an endpoint dispatching on the request method.

    Args:
        endpoints: Endpoint per HTTP method (case-insensitive).

    Returns:
        Endpoint: Dispatcher answering unknown methods with a 405 envelope.
    """
    table = {method.upper(): endpoint for method, endpoint in endpoints.items()}

    async def dispatch(request: Request) -> Response:
        endpoint = table.get(request.method)
        if endpoint is None:
            logger.debug(
                "Method {} not allowed on {}", request.method, request.url.path
            )
            return err_response(
                status.HTTP_405_METHOD_NOT_ALLOWED, MethodNotAllowedError()
            )
        return await endpoint(request)

    return dispatch


class _Dispatch:
    """ASGI adapter around an endpoint.

    Starlette limits function endpoints to GET when no methods are listed;
    ASGI apps are routed for every method.
    """

    def __init__(self, endpoint: Endpoint) -> None:
        self.endpoint = endpoint
        self.app = request_response(endpoint)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app(scope, receive, send)


class Router:
    """Ordered collection of routes mounted onto a FastAPI application."""

    def __init__(self) -> None:
        self.routes: list[Route] = []

    def handle(
        self, path: str, endpoints: Mapping[str, Endpoint], name: str | None = None
    ) -> None:
        """Register a path whose accepted methods are listed explicitly.

        Args:
            path: Starlette path template.
            endpoints: Endpoint per accepted method.
            name: Optional route name.
        """
        self.handle_func(path, method_switch(endpoints), name=name)

    def handle_func(
        self, path: str, endpoint: Endpoint, name: str | None = None
    ) -> None:
        """Register a path whose endpoint receives every method.

        Args:
            path: Starlette path template.
            endpoint: Endpoint doing its own method handling.
            name: Optional route name.
        """
        self.routes.append(
            Route(path, _Dispatch(endpoint), methods=None, name=name or path)
        )
        logger.debug("Registered route {}", path)

    def mount(self, app: FastAPI) -> None:
        """Append the registered routes to ``app`` in registration order."""
        app.router.routes.extend(self.routes)
