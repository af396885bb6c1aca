"""Bearer-token authentication for protected routes."""

from loguru import logger
from starlette import status
from starlette.requests import Request
from starlette.responses import Response

from catalog.api.constants import AUTHORIZATION_HEADER, BEARER_PREFIX
from catalog.api.middleware.chain import Endpoint
from catalog.api.utils.responses import err_response
from catalog.core.context import RequestContext
from catalog.core.exceptions import (
    INTERNAL_ERROR_MESSAGE,
    CatalogError,
    UnauthorizedError,
)
from catalog.domain.identity import IdentityProvider


def bearer_token(request: Request) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Returns:
        str | None: The token, or None when the header is absent or does not
            use the bearer scheme.
    """
    header = request.headers.get(AUTHORIZATION_HEADER, "")
    token = header.removeprefix(BEARER_PREFIX)
    if not header or token == header:
        return None
    return token


class AuthMiddleware:
    """Verify the bearer token and bind the caller's identifier.

    The identifier resolved by the identity provider is available to the
    wrapped handler through ``RequestContext.require_user_id()`` and is
    unbound again once the handler returns.

    Args:
        identity: Identity provider used to resolve tokens.
    """

    def __init__(self, identity: IdentityProvider) -> None:
        self.identity = identity

    async def __call__(self, request: Request, call_next: Endpoint) -> Response:
        token = bearer_token(request)
        if not token:
            logger.debug("Missing bearer token", path=request.url.path)
            return err_response(
                status.HTTP_401_UNAUTHORIZED, UnauthorizedError("missing bearer token")
            )

        try:
            user_id = await self.identity.parse_claims(token)
        except UnauthorizedError as exc:
            logger.debug("Rejected bearer token", path=request.url.path, error=str(exc))
            return err_response(status.HTTP_401_UNAUTHORIZED, exc)
        except CatalogError as exc:
            logger.debug(
                "Failed to verify bearer token",
                path=request.url.path,
                error_type=type(exc).__name__,
            )
            return err_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
            )

        if not user_id:
            return err_response(
                status.HTTP_401_UNAUTHORIZED, UnauthorizedError("invalid token")
            )

        with RequestContext.bind_user_id(user_id), logger.contextualize(
            user_id=user_id
        ):
            return await call_next(request)
