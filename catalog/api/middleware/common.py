"""Per-route interceptors shared by every handler set."""

from loguru import logger
from starlette import status
from starlette.requests import Request
from starlette.responses import Response

from catalog.api.middleware.chain import Endpoint
from catalog.api.utils.responses import err_response
from catalog.core.error_context import sanitize_error_context
from catalog.core.exceptions import INTERNAL_ERROR_MESSAGE, MethodNotAllowedError


class RecoverPanic:
    """Convert any exception escaping the route into a 500 envelope.

    Installed outermost on every route, it bounds a fault to the request
    that raised it. The full exception is logged; the client only receives
    the generic internal-error marker.
    """

    async def __call__(self, request: Request, call_next: Endpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Recovered from unhandled exception",
                **sanitize_error_context(
                    exc,
                    {
                        "request_method": request.method,
                        "request_path": request.url.path,
                    },
                ),
            )
            return err_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
            )


class MethodNotAllowed:
    """Reject requests whose method is outside the accepted set.

    Args:
        *methods: Accepted HTTP methods (case-insensitive).
    """

    def __init__(self, *methods: str) -> None:
        self.allowed = frozenset(method.upper() for method in methods)

    async def __call__(self, request: Request, call_next: Endpoint) -> Response:
        if request.method not in self.allowed:
            logger.debug(
                "Method {} not allowed on {}", request.method, request.url.path
            )
            return err_response(
                status.HTTP_405_METHOD_NOT_ALLOWED, MethodNotAllowedError()
            )
        return await call_next(request)
