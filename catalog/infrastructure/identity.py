"""HTTP client for the identity provider (SSO) service.

The provider exposes two JSON endpoints:

- ``POST {parse_claims_path}`` with ``{"token": ...}`` returning
  ``{"user_id": ...}``
- ``POST {create_user_path}`` with ``{"name", "email", "password"}``
  returning ``{"user_id": ...}``

Transport and status failures are translated into the catalog exception
hierarchy so handlers never see ``httpx`` types.
"""

from typing import Any

import httpx
from loguru import logger

from catalog.core.config import IdentityConfig
from catalog.core.exceptions import (
    AlreadyExistsError,
    CatalogError,
    InternalError,
    UnauthorizedError,
    ValidationError,
)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)


def _translate(response: httpx.Response) -> CatalogError:
    message = _error_message(response)
    context = {"status": response.status_code, "url": str(response.request.url)}
    if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
        return UnauthorizedError(message, context=context)
    if response.status_code == httpx.codes.CONFLICT:
        return AlreadyExistsError(message, context=context)
    if response.is_client_error:
        return ValidationError(message, context=context)
    return InternalError(context=context)


class HttpIdentityProvider:
    """``IdentityProvider`` backed by the SSO service's HTTP API.

    Args:
        config: Identity provider connection settings.
        client: Optional preconfigured client (tests inject a mock transport).
    """

    def __init__(
        self, config: IdentityConfig, client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url, timeout=config.timeout_seconds
        )

    async def parse_claims(self, token: str) -> str:
        body = await self._post(self.config.parse_claims_path, {"token": token})
        return str(body.get("user_id", ""))

    async def create_user(self, name: str, email: str, password: str) -> str:
        body = await self._post(
            self.config.create_user_path,
            {"name": name, "email": email, "password": password},
        )
        return str(body.get("user_id", ""))

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def _post(self, path: str, payload: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.RequestError as exc:
            logger.warning(
                "Identity provider unreachable: {}",
                type(exc).__name__,
                path=path,
            )
            raise InternalError(context={"path": path}, cause=exc) from exc

        if response.is_error:
            raise _translate(response)

        body = response.json()
        if not isinstance(body, dict):
            raise InternalError(context={"path": path, "reason": "unexpected body"})
        return body
