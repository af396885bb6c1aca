"""Request-scoped context for correlation IDs and the authenticated user."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from catalog.core.exceptions import MissingContextValueError

USER_ID_KEY = "user_id"

# Context variables survive await points and are isolated per asyncio task
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_user_id_var: ContextVar[str | None] = ContextVar(USER_ID_KEY, default=None)


class RequestContext:
    """Typed accessors for request-scoped values.

    Every value lives in a ``ContextVar``, so concurrent requests running in
    separate tasks never observe each other's state.
    """

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        """Set the correlation ID for the current context.

        Args:
            correlation_id: The correlation ID to store in the context.
        """
        _correlation_id_var.set(correlation_id)

    @staticmethod
    def get_correlation_id() -> str | None:
        """Get the correlation ID from the current context.

        Returns:
            str | None: The correlation ID if set, None otherwise.
        """
        return _correlation_id_var.get()

    @staticmethod
    @contextmanager
    def bind_user_id(user_id: str) -> Iterator[None]:
        """Bind the verified user identifier for the duration of a block.

        The previous value is restored on exit, even when the block raises.

        Args:
            user_id: Identifier resolved by the identity provider.

        Yields:
            None
        """
        token = _user_id_var.set(user_id)
        try:
            yield
        finally:
            _user_id_var.reset(token)

    @staticmethod
    def require_user_id() -> str:
        """Get the verified user identifier.

        Returns:
            str: The identifier bound by the authentication middleware.

        Raises:
            MissingContextValueError: If no user identifier is bound.
        """
        user_id = _user_id_var.get()
        if user_id is None:
            raise MissingContextValueError(USER_ID_KEY)
        return user_id

    @staticmethod
    def clear() -> None:
        """Clear all context variables."""
        _correlation_id_var.set(None)
        _user_id_var.set(None)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracking.

    Returns:
        str: A string representation of a UUID4.
    """
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """Generate a unique request ID in the format 'req-<uuid4>'."""
    return f"req-{uuid.uuid4()}"
