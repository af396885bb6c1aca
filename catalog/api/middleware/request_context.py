"""Correlation ID propagation.

The correlation ID is taken from the incoming ``X-Correlation-ID`` header or
generated, stored in a context variable, bound to every log record emitted
while the request is handled and echoed back in the response headers.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from catalog.api.constants import CORRELATION_ID_HEADER
from catalog.core.context import RequestContext, generate_correlation_id
from catalog.core.observability import add_correlation_id_to_span


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Set up the correlation ID for each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        )
        RequestContext.set_correlation_id(correlation_id)
        add_correlation_id_to_span(correlation_id)

        with logger.contextualize(correlation_id=correlation_id):
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
