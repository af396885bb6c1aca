"""Application-level exception handlers.

Route handlers map controller errors themselves; these handlers cover what
reaches the framework instead: unmatched paths, framework validation and
anything raised outside a route chain. Every response still uses the
error envelope.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from catalog.api.utils.responses import err_response
from catalog.core.context import RequestContext
from catalog.core.error_context import sanitize_error_context
from catalog.core.exceptions import (
    INTERNAL_ERROR_MESSAGE,
    CatalogError,
    ConflictError,
    DecodeError,
    MethodNotAllowedError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

_STATUS_BY_TYPE: tuple[tuple[type[CatalogError], int], ...] = (
    (DecodeError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (MethodNotAllowedError, status.HTTP_405_METHOD_NOT_ALLOWED),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def status_for(exc: BaseException) -> int:
    """Map an exception to its HTTP status code.

    Args:
        exc: Any exception.

    Returns:
        int: The mapped status, 500 for everything unrecognized.
    """
    for error_type, status_code in _STATUS_BY_TYPE:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def catalog_error_handler(request: Request, exc: Exception) -> Response:
    """Handle CatalogError exceptions.

    Raises:
        TypeError: If exc is not a CatalogError instance
    """
    if not isinstance(exc, CatalogError):
        raise TypeError(f"Expected CatalogError, got {type(exc).__name__}")

    status_code = status_for(exc)
    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": request.url.path,
            "error_code": exc.error_code,
        },
    )
    level = "WARNING" if exc.is_expected else "ERROR"
    logger.log(
        level,
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return err_response(status_code, INTERNAL_ERROR_MESSAGE)
    return err_response(status_code, exc)


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions as bad requests.

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    messages = []
    for error in exc.errors():
        field_name = ".".join(str(loc) for loc in error.get("loc", ())[1:]) or "root"
        messages.append(f"{field_name}: {error.get('msg', 'invalid value')}")

    logger.warning(
        "Request validation failed",
        correlation_id=RequestContext.get_correlation_id(),
        path=request.url.path,
        method=request.method,
        validation_errors=messages,
    )
    return err_response(status.HTTP_400_BAD_REQUEST, "; ".join(messages))


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException, including unmatched paths.

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    logger.warning(
        "HTTP exception",
        correlation_id=RequestContext.get_correlation_id(),
        status=exc.status_code,
        method=request.method,
        path=request.url.path,
    )
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return err_response(exc.status_code, INTERNAL_ERROR_MESSAGE)
    return err_response(exc.status_code, exc.detail)


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle anything else; details never reach the client."""
    error_context = sanitize_error_context(
        exc,
        {"request_method": request.method, "request_path": request.url.path},
    )
    logger.opt(exception=exc).error(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )
    return err_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
