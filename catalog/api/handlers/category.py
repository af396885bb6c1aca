"""Category and filter endpoints."""

from starlette import status
from starlette.requests import Request
from starlette.responses import Response

from catalog.api.constants import (
    CATEGORY_PATH,
    MIN_SEARCH_QUERY_LENGTH,
    OK_MESSAGE,
    SEARCH_PARAM,
)
from catalog.api.handlers.base import BaseHandler, decode_body
from catalog.api.middleware.chain import Chain, Middleware
from catalog.api.middleware.common import RecoverPanic
from catalog.api.router import Router
from catalog.api.utils.query import parse_pagination
from catalog.core.exceptions import (
    AlreadyExistsError,
    DecodeError,
    NotFoundError,
    ValidationError,
)
from catalog.domain.models import Category
from catalog.domain.validation import category_validation


class CategoryHandler(BaseHandler):
    """Handlers for ``/api/category`` and its sub-resources."""

    async def list_categories(self, request: Request) -> Response:
        op = "category.listCategories.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            page, size = parse_pagination(
                request.query_params,
                self.pagination.default_page,
                self.pagination.default_page_size,
                self.pagination.max_page_size,
            )
            try:
                res = await self.ctrl.list_categories(page, size)
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to list categories",
                )
            return outcome.succeed_page(res)

    async def create_category(self, request: Request) -> Response:
        op = "category.createCategory.handler"
        with self.observe(op, status.HTTP_201_CREATED) as outcome:
            try:
                req = await decode_body(request, Category)
            except DecodeError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to decode request"
                )

            try:
                category_validation(req)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to validate obj"
                )

            try:
                res = await self.ctrl.create_category(req)
            except AlreadyExistsError as exc:
                return outcome.fail(
                    status.HTTP_409_CONFLICT, exc, "category already exists"
                )
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to create category",
                )
            return outcome.succeed(res)

    async def get_category(self, request: Request) -> Response:
        op = "category.getCategory.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            slug = request.path_params["slug"]
            try:
                res = await self.ctrl.get_category_by_slug(slug)
            except NotFoundError as exc:
                return outcome.fail(
                    status.HTTP_404_NOT_FOUND, exc, "category not found"
                )
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to get category"
                )
            return outcome.succeed(res)

    async def update_category(self, request: Request) -> Response:
        op = "category.updateCategory.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            slug = request.path_params["slug"]
            try:
                req = await decode_body(request, Category)
            except DecodeError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to decode request"
                )

            try:
                category_validation(req)
            except ValidationError as exc:
                return outcome.fail(
                    status.HTTP_400_BAD_REQUEST, exc, "failed to validate obj"
                )

            try:
                res = await self.ctrl.update_category(slug, req)
            except NotFoundError as exc:
                return outcome.fail(
                    status.HTTP_404_NOT_FOUND, exc, "category not found"
                )
            except AlreadyExistsError as exc:
                return outcome.fail(
                    status.HTTP_409_CONFLICT, exc, "category slug taken"
                )
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to update category",
                )
            return outcome.succeed(res)

    async def delete_category(self, request: Request) -> Response:
        op = "category.deleteCategory.handler"
        with self.observe(op, status.HTTP_204_NO_CONTENT) as outcome:
            slug = request.path_params["slug"]
            try:
                await self.ctrl.delete_category(slug)
            except NotFoundError as exc:
                return outcome.fail(
                    status.HTTP_404_NOT_FOUND, exc, "category not found"
                )
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to delete category",
                )
            # a 204 response cannot carry the envelope body
            return outcome.succeed(OK_MESSAGE, status_code=status.HTTP_200_OK)

    async def category_search(self, request: Request) -> Response:
        op = "category.categorySearch.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            query = request.query_params.get(SEARCH_PARAM, "")
            if len(query) < MIN_SEARCH_QUERY_LENGTH:
                return outcome.succeed([])

            page, size = parse_pagination(
                request.query_params,
                self.pagination.default_page,
                self.pagination.search_page_size,
                self.pagination.max_page_size,
            )
            try:
                res = await self.ctrl.category_search(query, page, size)
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to search categories",
                )
            return outcome.succeed_page(res)

    async def category_filters_search(self, request: Request) -> Response:
        op = "category.categoryFiltersSearch.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            query = request.query_params.get(SEARCH_PARAM, "")
            if len(query) < MIN_SEARCH_QUERY_LENGTH:
                return outcome.succeed([])

            page, size = parse_pagination(
                request.query_params,
                self.pagination.default_page,
                self.pagination.search_page_size,
                self.pagination.max_page_size,
            )
            try:
                res = await self.ctrl.category_filters_search(query, page, size)
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    exc,
                    "failed to search filters",
                )
            return outcome.succeed_page(res)

    async def list_category_filters(self, request: Request) -> Response:
        op = "category.listCategoryFilters.handler"
        with self.observe(op, status.HTTP_200_OK) as outcome:
            slug = request.path_params["slug"]
            try:
                res = await self.ctrl.list_category_filters(slug)
            except NotFoundError as exc:
                return outcome.fail(
                    status.HTTP_404_NOT_FOUND, exc, "category not found"
                )
            except Exception as exc:
                return outcome.fail(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "failed to list filters"
                )
            return outcome.succeed(res)


def register_category_routes(
    router: Router, handler: CategoryHandler, auth: Middleware
) -> None:
    """Mount the category routes.

    Reads are public; writes require a verified bearer token.

    Args:
        router: Router to register on.
        handler: Category handler set.
        auth: Authentication middleware for write routes.
    """
    public = Chain(RecoverPanic())
    protected = public.append(auth)

    router.handle(
        CATEGORY_PATH,
        {
            "GET": public.then(handler.list_categories),
            "POST": protected.then(handler.create_category),
        },
    )
    router.handle(
        f"{CATEGORY_PATH}/search", {"GET": public.then(handler.category_search)}
    )
    router.handle(
        f"{CATEGORY_PATH}/filters/search",
        {"GET": public.then(handler.category_filters_search)},
    )
    router.handle(
        f"{CATEGORY_PATH}/{{slug}}",
        {
            "GET": public.then(handler.get_category),
            "PUT": protected.then(handler.update_category),
            "DELETE": protected.then(handler.delete_category),
        },
    )
    router.handle(
        f"{CATEGORY_PATH}/{{slug}}/filters",
        {"GET": public.then(handler.list_category_filters)},
    )
