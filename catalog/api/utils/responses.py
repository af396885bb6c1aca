"""Uniform response envelope serialized with orjson.

Every handler outcome has one of three top-level shapes:

- success: ``{"status": int, "data": ...}``
- paginated success: ``{"status", "data", "page", "size", "total"}``
- error: ``{"status": int, "error": str}``

Clients can branch on the presence of ``error`` without parsing the status
line. Each handler invocation writes exactly one envelope.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from catalog.domain.models import Page


class ORJSONResponse(JSONResponse):
    """JSONResponse rendered with orjson, keys sorted for stable output."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")
        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)


def success_response(status_code: int, payload: Any) -> ORJSONResponse:  # noqa: ANN401 - models, lists or plain values
    """Wrap a payload in the success envelope.

    Args:
        status_code: HTTP status to send and echo in the body.
        payload: Models, lists of models or plain JSON values.

    Returns:
        ORJSONResponse: The enveloped response.
    """
    return ORJSONResponse(
        status_code=status_code,
        content={"status": status_code, "data": to_jsonable_python(payload)},
    )


def success_paginated_response(status_code: int, page: Page[Any]) -> ORJSONResponse:
    """Wrap one page of results in the paginated success envelope.

    Args:
        status_code: HTTP status to send and echo in the body.
        page: The page returned by the controller.

    Returns:
        ORJSONResponse: The enveloped response.
    """
    return ORJSONResponse(
        status_code=status_code,
        content={
            "status": status_code,
            "data": to_jsonable_python(page.data),
            "page": page.page,
            "size": page.size,
            "total": page.total,
        },
    )


def err_response(status_code: int, err: BaseException | str) -> ORJSONResponse:
    """Wrap an error in the error envelope.

    Args:
        status_code: HTTP status to send and echo in the body.
        err: The error whose text becomes the ``error`` field. Callers pass
            a generic marker instead of the real error for 500-class failures.

    Returns:
        ORJSONResponse: The enveloped response.
    """
    return ORJSONResponse(
        status_code=status_code,
        content={"status": status_code, "error": str(err)},
    )
