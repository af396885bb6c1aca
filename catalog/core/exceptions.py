"""Structured exception hierarchy for the catalog service.

Every error the domain or the HTTP layer can raise derives from
``CatalogError``. Each subclass names one transport-level outcome, so the API
layer maps exceptions to status codes by type alone:

- **DecodeError**: malformed request body (400)
- **ValidationError**: domain rule violation (400)
- **UnauthorizedError**: missing or invalid credential (401)
- **NotFoundError**: entity absent (404)
- **MethodNotAllowedError**: method not accepted on a known path (405)
- **ConflictError**: uniqueness or state conflict (409), specialized as
  ``AlreadyExistsError`` and ``InvalidStateError``
- **InternalError**: anything else (500, detail suppressed from clients)

``MissingContextValueError`` is raised by the typed request-context accessors
and is deliberately not a ``CatalogError``: callers decide how an absent value
maps to a response.
"""

from enum import Enum
from typing import Any

INTERNAL_ERROR_MESSAGE = "internal error"


class ErrorCode(Enum):
    """Standardized error codes for the catalog service."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""

    DECODE_ERROR = "DECODE_ERROR"
    """The request body could not be decoded."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input failed a domain validation rule."""

    NOT_FOUND = "NOT_FOUND"
    """The requested entity does not exist."""

    ALREADY_EXISTS = "ALREADY_EXISTS"
    """An entity with the same identity already exists."""

    INVALID_STATE = "INVALID_STATE"
    """The operation is not defined for the entity's current state."""

    UNAUTHORIZED = "UNAUTHORIZED"
    """Authentication failed or no credential was supplied."""

    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    """The HTTP method is not accepted on this path."""


class Severity(Enum):
    """Severity levels used to pick the log level of a handled error."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class CatalogError(Exception):
    """Base exception for all catalog service errors.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode)
        message: Human-readable error message, safe to show to clients for
            every class except ``InternalError``
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional structured context for logging
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class DecodeError(CatalogError):
    """Raised when a request body is not valid JSON for the expected model."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.DECODE_ERROR, message, Severity.LOW, context, cause)


class ValidationError(CatalogError):
    """Raised when decoded input violates a domain rule.

    Args:
        message: Description of the validation failure
        field: Name of the offending field, when a single field is at fault
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        context = dict(context or {})
        if field:
            context["field"] = field
        self.field = field
        super().__init__(
            ErrorCode.VALIDATION_ERROR, message, Severity.LOW, context, cause
        )


class NotFoundError(CatalogError):
    """Raised when a requested category, filter or order does not exist."""

    def __init__(
        self,
        message: str = "not found",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, Severity.LOW, context, cause)


class ConflictError(CatalogError):
    """Base class for errors that map to a 409 Conflict."""


class AlreadyExistsError(ConflictError):
    """Raised by storage when a uniqueness constraint would be violated."""

    def __init__(
        self,
        message: str = "already exists",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.ALREADY_EXISTS, message, Severity.LOW, context, cause
        )


class InvalidStateError(ConflictError):
    """Raised when an operation is attempted on an order in a terminal state."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.INVALID_STATE, message, Severity.MEDIUM, context, cause
        )


class UnauthorizedError(CatalogError):
    """Raised when a credential is missing, malformed or rejected."""

    def __init__(
        self,
        message: str = "unauthorized",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.UNAUTHORIZED, message, Severity.HIGH, context, cause
        )


class MethodNotAllowedError(CatalogError):
    """Raised when a known path is requested with an unaccepted method."""

    def __init__(
        self,
        message: str = "method not allowed",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(ErrorCode.METHOD_NOT_ALLOWED, message, Severity.LOW, context)


class InternalError(CatalogError):
    """Raised for failures whose detail must not reach the client."""

    def __init__(
        self,
        message: str = INTERNAL_ERROR_MESSAGE,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.INTERNAL_ERROR, message, Severity.CRITICAL, context, cause
        )


class MissingContextValueError(LookupError):
    """Raised when a request-scoped value is read before it was bound."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"request context has no value for '{key}'")
