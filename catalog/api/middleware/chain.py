"""Explicit, ordered middleware chains for individual routes.

A ``Chain`` is an immutable list of interceptors. The first interceptor is
the outermost: it sees the request first and the response last. Chains are
materialized into a single endpoint once, at route registration, so no
composition work happens per request::

    public = Chain(RecoverPanic())
    protected = public.append(auth)
    router.handle("/api/category", {"POST": protected.then(h.create_category)})
"""

from collections.abc import Awaitable, Callable, Iterator
from functools import reduce
from typing import Protocol, TypeAlias

from starlette.requests import Request
from starlette.responses import Response

Endpoint: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """A request interceptor.

    Implementations either return a response themselves (short-circuit) or
    delegate to ``call_next`` and may inspect or replace its response.
    """

    async def __call__(self, request: Request, call_next: Endpoint) -> Response: ...


def _link(middleware: Middleware, call_next: Endpoint) -> Endpoint:
    async def endpoint(request: Request) -> Response:
        return await middleware(request, call_next)

    return endpoint


class Chain:
    """Immutable ordered sequence of middleware, outermost first."""

    __slots__ = ("_middleware",)

    def __init__(self, *middleware: Middleware) -> None:
        self._middleware: tuple[Middleware, ...] = middleware

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """The interceptors in application order."""
        return self._middleware

    def append(self, *middleware: Middleware) -> "Chain":
        """Return a new chain with ``middleware`` added innermost."""
        return Chain(*self._middleware, *middleware)

    def then(self, endpoint: Endpoint) -> Endpoint:
        """Wrap ``endpoint`` so every interceptor runs before it, in order."""
        return reduce(
            lambda handler, middleware: _link(middleware, handler),
            reversed(self._middleware),
            endpoint,
        )

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)

    def __len__(self) -> int:
        return len(self._middleware)

    def __repr__(self) -> str:
        names = ", ".join(type(m).__name__ for m in self._middleware)
        return f"Chain({names})"
