"""Shared plumbing for route handlers.

Each handler runs inside ``BaseHandler.observe``, which names the operation
for logging and records exactly one metrics observation when the handler
exits, on every path. The handler settles the final status through the
yielded ``Outcome``, which also renders the single response envelope.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette import status
from starlette.requests import Request
from starlette.responses import Response

from catalog.api.utils.responses import (
    err_response,
    success_paginated_response,
    success_response,
)
from catalog.core.config import PaginationConfig
from catalog.core.error_context import sanitize_error_context
from catalog.core.exceptions import INTERNAL_ERROR_MESSAGE, DecodeError
from catalog.core.observability import MetricsSink
from catalog.domain.controller import Controller
from catalog.domain.models import Page

M = TypeVar("M", bound=BaseModel)


class Outcome:
    """Mutable result of one handler invocation.

    Args:
        op: Operation name used in logs and metrics.
        status_code: Status reported on success.
    """

    __slots__ = ("op", "status_code")

    def __init__(self, op: str, status_code: int) -> None:
        self.op = op
        self.status_code = status_code

    def fail(
        self,
        status_code: int,
        err: BaseException,
        message: str,
        *,
        expose: bool = True,
    ) -> Response:
        """Settle on an error status and render the error envelope.

        The error is logged at debug level. Its text is sent to the client
        only for non-5xx statuses and only when ``expose`` is set; otherwise
        the generic internal-error marker is sent instead.

        Args:
            status_code: Final status of the request.
            err: The underlying error.
            message: Log message describing the failed step.
            expose: Whether the error text may reach the client.

        Returns:
            Response: The error envelope.
        """
        self.status_code = status_code
        logger.debug(message, op=self.op, **sanitize_error_context(err))
        if not expose or status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return err_response(status_code, INTERNAL_ERROR_MESSAGE)
        return err_response(status_code, err)

    def succeed(self, payload: Any, *, status_code: int | None = None) -> Response:  # noqa: ANN401 - models, lists or plain values
        """Render the success envelope.

        Args:
            payload: Response data.
            status_code: Transport status, when it differs from the status
                recorded for metrics.
        """
        return success_response(status_code or self.status_code, payload)

    def succeed_page(self, page: Page[Any]) -> Response:
        """Render the paginated success envelope."""
        return success_paginated_response(self.status_code, page)


async def decode_body(request: Request, model: type[M]) -> M:
    """Decode the request body as JSON into ``model``.

    Raises:
        DecodeError: If the body is not valid JSON of the expected shape.
    """
    body = await request.body()
    try:
        return model.model_validate_json(body)
    except PydanticValidationError as exc:
        raise DecodeError(
            f"invalid {model.__name__.lower()} body: {exc.errors()[0]['msg']}",
            cause=exc,
        ) from exc


class BaseHandler:
    """Dependencies and helpers common to all handler sets.

    Args:
        ctrl: Business controller.
        metrics: Sink receiving one observation per request.
        pagination: Paging defaults and limits.
    """

    def __init__(
        self, ctrl: Controller, metrics: MetricsSink, pagination: PaginationConfig
    ) -> None:
        self.ctrl = ctrl
        self.metrics = metrics
        self.pagination = pagination

    @contextmanager
    def observe(self, op: str, status_code: int) -> Iterator[Outcome]:
        """Scope a handler invocation.

        Args:
            op: Operation name, e.g. ``category.listCategories.handler``.
            status_code: Status reported unless the handler settles another.

        Yields:
            Outcome: Holder of the final status.
        """
        outcome = Outcome(op, status_code)
        start = time.perf_counter()
        try:
            with logger.contextualize(op=op):
                yield outcome
        except Exception:
            outcome.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            raise
        finally:
            self.metrics.observe_request(
                time.perf_counter() - start, outcome.status_code, op
            )
