"""Order endpoints, including guest-user provisioning on checkout.

Order paths do their own method switching: ``/api/order`` is public for
``POST`` (guests may check out) but protected for ``GET``, so a single
method-keyed chain does not fit. The order id is read from the raw path
suffix, which lets a malformed id be rejected with 400 before any
controller call.
"""

from uuid import UUID, uuid4

from starlette import status
from starlette.requests import Request
from starlette.responses import Response

from catalog.api.constants import (
    OK_MESSAGE,
    ORDER_PATH,
    ORDER_PATH_PREFIX,
    SORT_PARAM,
)
from catalog.api.handlers.base import BaseHandler, decode_body
from catalog.api.middleware.auth import bearer_token
from catalog.api.middleware.chain import Chain, Middleware
from catalog.api.middleware.common import MethodNotAllowed, RecoverPanic
from catalog.api.router import Router, method_switch
from catalog.api.utils.query import parse_filters, parse_pagination
from catalog.core.config import PaginationConfig
from catalog.core.context import RequestContext
from catalog.core.exceptions import (
    CatalogError,
    ConflictError,
    DecodeError,
    MissingContextValueError,
    NotFoundError,
    ValidationError,
)
from catalog.core.observability import MetricsSink
from catalog.domain.controller import Controller
from catalog.domain.identity import IdentityProvider
from catalog.domain.models import Order
from catalog.domain.validation import order_validation

NIL_UUID = UUID(int=0)
MAX_ORDER_ID = 2**64 - 1
MAX_ORDER_ID_DIGITS = len(str(MAX_ORDER_ID))


def parse_order_id(path: str) -> int:
    """Parse the numeric order id following ``/api/order/``.

    Only plain ASCII digits are accepted; signs, whitespace, underscores and
    values beyond the unsigned 64-bit range are rejected.

    Raises:
        ValidationError: If the suffix is not a valid order id.
    """
    raw = path.removeprefix(ORDER_PATH_PREFIX)
    if (
        not (raw.isascii() and raw.isdigit())
        or len(raw) > MAX_ORDER_ID_DIGITS
        or int(raw) > MAX_ORDER_ID
    ):
        raise ValidationError(f"invalid order id {raw!r}", field="id")
    return int(raw)


class OrderHandler(BaseHandler):
    """Handlers for ``/api/order`` and its sub-resources.

    Args:
        ctrl: Business controller.
        identity: Identity provider used to resolve or provision customers.
        metrics: Sink receiving one observation per request.
        pagination: Paging defaults and limits.
    """

    def __init__(
        self,
        ctrl: Controller,
        identity: IdentityProvider,
        metrics: MetricsSink,
        pagination: PaginationConfig,
    ) -> None:
        super().__init__(ctrl, metrics, pagination)
        self.identity = identity

    async def list_orders(self, request: Request) -> Response:
        op = "orders.listOrders.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            page, size = parse_pagination(
                request.query_params,
                self.pagination.default_page,
                self.pagination.default_page_size,
                self.pagination.max_page_size,
            )
            filters = parse_filters(request.query_params)
            sort = request.query_params.get(SORT_PARAM, "")
            try:
                res = await self.ctrl.list_orders(page, size, filters, sort)
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to list orders"
                )
            return outcome.succeed_page(res)

    async def list_user_orders(self, request: Request) -> Response:
        op = "orders.listUserOrders.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            try:
                uid = UUID(RequestContext.require_user_id())
            except (MissingContextValueError, ValueError) as exc:
                return outcome.fail(
                    status.HTTP_401_UNAUTHORIZED, exc, "failed to parse user UUID"
                )

            page, size = parse_pagination(
                request.query_params,
                self.pagination.default_page,
                self.pagination.default_page_size,
                self.pagination.max_page_size,
            )
            try:
                res = await self.ctrl.list_user_orders(uid, page, size)
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to list user orders",
                )
            return outcome.succeed_page(res)

    async def get_order(self, request: Request) -> Response:
        op = "orders.getOrder.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            try:
                order_id = parse_order_id(request.url.path)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to parse order id"
                )

            try:
                res = await self.ctrl.get_order(order_id)
            except NotFoundError as exc:
                return outcome.fail(status.HTTP_404_NOT_FOUND, exc, "order not found")
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to get order"
                )
            return outcome.succeed(res)

    async def create_order(self, request: Request) -> Response:
        op = "orders.createOrder.handler"
        with self.observe(op, status.HTTP_201_CREATED) as outcome:
            try:
                req = await decode_body(request, Order)
            except DecodeError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to decode request"
                )

            try:
                order_validation(req)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to validate obj"
                )

            uid = NIL_UUID
            if (token := bearer_token(request)) is not None:
                try:
                    uid = UUID(await self.identity.parse_claims(token))
                except (CatalogError, ValueError) as exc:
                    return outcome.fail(
                        status.HTTP_400_BAD_REQUEST,
                        exc,
                        "failed to parse user UUID",
                        expose=False,
                    )

            if uid == NIL_UUID:
                try:
                    user_id = await self.identity.create_user(
                        req.fio, req.email, str(uuid4())
                    )
                except CatalogError as exc:
                    return outcome.fail(
                        status.HTTP_400_BAD_REQUEST, exc, "failed to create guest user"
                    )
                try:
                    uid = UUID(user_id)
                except ValueError as exc:
                    return outcome.fail(
                        status.HTTP_500_INTERNAL_SERVER_ERROR,
                        exc,
                        "failed to parse guest user UUID",
                    )

            try:
                res = await self.ctrl.create_order(uid, req)
            except NotFoundError as exc:
                return outcome.fail(status.HTTP_404_NOT_FOUND, exc, "not found")
            except ConflictError as exc:
                return outcome.fail(status.HTTP_409_CONFLICT, exc, "order conflict")
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to create order"
                )
            return outcome.succeed(res)

    async def update_order(self, request: Request) -> Response:
        op = "orders.updateOrder.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            try:
                order_id = parse_order_id(request.url.path)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to parse order id"
                )

            try:
                req = await decode_body(request, Order)
            except DecodeError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to decode request"
                )

            try:
                order_validation(req)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to validate obj"
                )

            try:
                await self.ctrl.update_order(order_id, req)
            except NotFoundError as exc:
                return outcome.fail(status.HTTP_404_NOT_FOUND, exc, "order not found")
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to update order"
                )
            return outcome.succeed(OK_MESSAGE)

    async def cancel_order(self, request: Request) -> Response:
        op = "orders.cancelOrder.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            try:
                order_id = parse_order_id(request.url.path)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to parse order id"
                )

            try:
                await self.ctrl.cancel_order(order_id)
            except NotFoundError as exc:
                return outcome.fail(status.HTTP_404_NOT_FOUND, exc, "order not found")
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to cancel order"
                )
            return outcome.succeed(OK_MESSAGE)


def register_order_routes(
    router: Router, handler: OrderHandler, auth: Middleware
) -> None:
    """Mount the order routes.

    ``/api/order/me`` is registered before ``/api/order/{order_path}`` so it
    is not taken for an order id.

    Args:
        router: Router to register on.
        handler: Order handler set.
        auth: Authentication middleware for protected routes.
    """
    recover = RecoverPanic()

    router.handle_func(
        f"{ORDER_PATH}/me",
        Chain(recover, MethodNotAllowed("GET"), auth).then(handler.list_user_orders),
    )
    router.handle_func(
        ORDER_PATH,
        method_switch(
            {
                "GET": Chain(recover, auth).then(handler.list_orders),
                "POST": Chain(recover).then(handler.create_order),
            }
        ),
    )
    router.handle_func(
        f"{ORDER_PATH_PREFIX}{{order_path:path}}",
        Chain(recover, MethodNotAllowed("GET", "PUT", "DELETE"), auth).then(
            method_switch(
                {
                    "GET": handler.get_order,
                    "PUT": handler.update_order,
                    "DELETE": handler.cancel_order,
                }
            )
        ),
    )
