"""In-memory implementation of the storage collaborator.

Used for local development and tests. Data lives for the lifetime of the
process. Writes are serialized with an ``asyncio.Lock`` so concurrent
requests never observe a half-applied change or share an order ID. Stored
models are copied on the way in and out so callers cannot mutate storage
through a returned reference.
"""

import asyncio
import itertools
from collections.abc import Mapping
from typing import Any, TypeVar
from uuid import UUID

from loguru import logger
from pydantic import BaseModel

from catalog.core.exceptions import AlreadyExistsError, NotFoundError
from catalog.domain.models import Category, Filter, Order

M = TypeVar("M", bound=BaseModel)

# Nested line items have no natural order
_SORTABLE_ORDER_FIELDS = frozenset(Order.model_fields) - {"items"}


def _matches(text: str, query: str) -> bool:
    return query.casefold() in text.casefold()


def _window(
    items: list[M], offset: int, limit: int
) -> tuple[list[M], int]:
    window = items[offset : offset + limit]
    return [item.model_copy(deep=True) for item in window], len(items)


def _sort_key(field: str) -> Any:  # noqa: ANN401 - key function for sorted()
    def key(order: Order) -> tuple[bool, Any]:
        value = getattr(order, field)
        return (value is None, "" if value is None else value)

    return key


class InMemoryRepository:
    """Dictionary-backed ``Repository``."""

    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}
        self._orders: dict[int, Order] = {}
        self._order_ids = itertools.count(1)
        self._lock = asyncio.Lock()

    # Categories

    async def list_categories(
        self, offset: int, limit: int
    ) -> tuple[list[Category], int]:
        items = sorted(self._categories.values(), key=lambda c: c.slug)
        return _window(items, offset, limit)

    async def search_categories(
        self, query: str, offset: int, limit: int
    ) -> tuple[list[Category], int]:
        items = [
            c
            for c in sorted(self._categories.values(), key=lambda c: c.slug)
            if _matches(c.name, query) or _matches(c.slug, query)
        ]
        return _window(items, offset, limit)

    async def search_filters(
        self, query: str, offset: int, limit: int
    ) -> tuple[list[Filter], int]:
        items = [
            f
            for c in sorted(self._categories.values(), key=lambda c: c.slug)
            for f in c.filters
            if _matches(f.name, query)
        ]
        return _window(items, offset, limit)

    async def get_category(self, slug: str) -> Category:
        return self._category(slug).model_copy(deep=True)

    async def list_category_filters(self, slug: str) -> list[Filter]:
        return [f.model_copy(deep=True) for f in self._category(slug).filters]

    async def create_category(self, category: Category) -> Category:
        async with self._lock:
            if category.slug in self._categories:
                msg = f"category '{category.slug}' already exists"
                raise AlreadyExistsError(msg, context={"slug": category.slug})
            stored = self._own_filters(category)
            self._categories[stored.slug] = stored
        logger.debug("Stored category {}", stored.slug)
        return stored.model_copy(deep=True)

    async def update_category(self, slug: str, category: Category) -> Category:
        async with self._lock:
            self._category(slug)
            if category.slug != slug and category.slug in self._categories:
                msg = f"category '{category.slug}' already exists"
                raise AlreadyExistsError(msg, context={"slug": category.slug})
            stored = self._own_filters(category)
            del self._categories[slug]
            self._categories[stored.slug] = stored
        logger.debug("Replaced category {} with {}", slug, stored.slug)
        return stored.model_copy(deep=True)

    async def delete_category(self, slug: str) -> None:
        async with self._lock:
            self._category(slug)
            # Filters are owned by the category and go with it
            del self._categories[slug]
        logger.debug("Removed category {}", slug)

    def _category(self, slug: str) -> Category:
        try:
            return self._categories[slug]
        except KeyError as exc:
            msg = f"category '{slug}' not found"
            raise NotFoundError(msg, context={"slug": slug}, cause=exc) from exc

    @staticmethod
    def _own_filters(category: Category) -> Category:
        stored = category.model_copy(deep=True)
        for filter_ in stored.filters:
            filter_.category_slug = stored.slug
        return stored

    # Orders

    async def list_orders(
        self,
        offset: int,
        limit: int,
        filters: Mapping[str, str],
        sort: str,
    ) -> tuple[list[Order], int]:
        items = list(self._orders.values())
        for field, value in filters.items():
            if field not in Order.model_fields:
                logger.warning("Ignoring filter on unknown order field '{}'", field)
                continue
            items = [o for o in items if str(getattr(o, field)) == value]

        field = sort.removeprefix("-")
        if field in _SORTABLE_ORDER_FIELDS:
            items.sort(key=_sort_key(field), reverse=sort.startswith("-"))
        elif field:
            logger.warning("Ignoring sort on unsortable order field '{}'", field)

        return _window(items, offset, limit)

    async def list_user_orders(
        self, user_id: UUID, offset: int, limit: int
    ) -> tuple[list[Order], int]:
        items = [o for o in self._orders.values() if o.user_id == user_id]
        return _window(items, offset, limit)

    async def get_order(self, order_id: int) -> Order:
        try:
            return self._orders[order_id].model_copy(deep=True)
        except KeyError as exc:
            msg = f"order {order_id} not found"
            raise NotFoundError(msg, context={"order_id": order_id}, cause=exc) from exc

    async def create_order(self, order: Order) -> Order:
        async with self._lock:
            stored = order.model_copy(update={"id": next(self._order_ids)}, deep=True)
            self._orders[stored.id] = stored
        logger.debug("Stored order {}", stored.id)
        return stored.model_copy(deep=True)

    async def save_order(self, order: Order) -> Order:
        async with self._lock:
            if order.id not in self._orders:
                msg = f"order {order.id} not found"
                raise NotFoundError(msg, context={"order_id": order.id})
            self._orders[order.id] = order.model_copy(deep=True)
        return order
