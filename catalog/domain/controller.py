"""Controller contract and the reference controller over a repository.

``Controller`` is the interface HTTP handlers depend on. ``CatalogController``
implements it on top of any ``Repository`` and owns the order lifecycle:

    created -> updated* -> cancelled

``updated`` (and the fulfillment states) may repeat any number of times;
``cancelled`` is terminal and every further mutation raises
``InvalidStateError``.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from loguru import logger

from catalog.core.exceptions import InvalidStateError
from catalog.domain.models import Category, Filter, Order, OrderStatus, Page
from catalog.domain.repository import Repository


class Controller(Protocol):
    """Business operations invoked by the HTTP handlers.

    Implementations raise ``NotFoundError`` for absent entities,
    ``AlreadyExistsError`` for uniqueness conflicts and ``InvalidStateError``
    for operations on cancelled orders.
    """

    async def list_categories(self, page: int, size: int) -> Page[Category]: ...

    async def create_category(self, category: Category) -> Category: ...

    async def get_category_by_slug(self, slug: str) -> Category: ...

    async def update_category(self, slug: str, category: Category) -> Category: ...

    async def delete_category(self, slug: str) -> None: ...

    async def category_search(
        self, query: str, page: int, size: int
    ) -> Page[Category]: ...

    async def category_filters_search(
        self, query: str, page: int, size: int
    ) -> Page[Filter]: ...

    async def list_category_filters(self, slug: str) -> list[Filter]: ...

    async def list_orders(
        self, page: int, size: int, filters: Mapping[str, str], sort: str
    ) -> Page[Order]: ...

    async def list_user_orders(
        self, user_id: UUID, page: int, size: int
    ) -> Page[Order]: ...

    async def get_order(self, order_id: int) -> Order: ...

    async def create_order(self, user_id: UUID, order: Order) -> Order: ...

    async def update_order(self, order_id: int, order: Order) -> None: ...

    async def cancel_order(self, order_id: int) -> None: ...


def _offset(page: int, size: int) -> int:
    return (page - 1) * size


class CatalogController:
    """Reference ``Controller`` implementation.

    Args:
        repo: Storage collaborator.
    """

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    async def list_categories(self, page: int, size: int) -> Page[Category]:
        items, total = await self.repo.list_categories(_offset(page, size), size)
        return Page[Category](page=page, size=size, data=items, total=total)

    async def create_category(self, category: Category) -> Category:
        created = await self.repo.create_category(category)
        logger.info("Created category {}", created.slug)
        return created

    async def get_category_by_slug(self, slug: str) -> Category:
        return await self.repo.get_category(slug)

    async def update_category(self, slug: str, category: Category) -> Category:
        updated = await self.repo.update_category(slug, category)
        logger.info("Updated category {}", slug)
        return updated

    async def delete_category(self, slug: str) -> None:
        await self.repo.delete_category(slug)
        logger.info("Deleted category {}", slug)

    async def category_search(
        self, query: str, page: int, size: int
    ) -> Page[Category]:
        items, total = await self.repo.search_categories(
            query, _offset(page, size), size
        )
        return Page[Category](page=page, size=size, data=items, total=total)

    async def category_filters_search(
        self, query: str, page: int, size: int
    ) -> Page[Filter]:
        items, total = await self.repo.search_filters(query, _offset(page, size), size)
        return Page[Filter](page=page, size=size, data=items, total=total)

    async def list_category_filters(self, slug: str) -> list[Filter]:
        return await self.repo.list_category_filters(slug)

    async def list_orders(
        self, page: int, size: int, filters: Mapping[str, str], sort: str
    ) -> Page[Order]:
        items, total = await self.repo.list_orders(
            _offset(page, size), size, filters, sort
        )
        return Page[Order](page=page, size=size, data=items, total=total)

    async def list_user_orders(
        self, user_id: UUID, page: int, size: int
    ) -> Page[Order]:
        items, total = await self.repo.list_user_orders(
            user_id, _offset(page, size), size
        )
        return Page[Order](page=page, size=size, data=items, total=total)

    async def get_order(self, order_id: int) -> Order:
        return await self.repo.get_order(order_id)

    async def create_order(self, user_id: UUID, order: Order) -> Order:
        now = datetime.now(UTC)
        new_order = order.model_copy(
            update={
                "id": None,
                "user_id": user_id,
                "status": OrderStatus.CREATED,
                "created_at": now,
                "updated_at": now,
            }
        )
        created = await self.repo.create_order(new_order)
        logger.info("Created order {} for user {}", created.id, user_id)
        return created

    async def update_order(self, order_id: int, order: Order) -> None:
        current = await self.repo.get_order(order_id)
        self._ensure_mutable(current)
        if order.status is OrderStatus.CANCELLED:
            msg = "orders are cancelled through the cancel operation"
            raise InvalidStateError(msg, context={"order_id": order_id})

        # Fulfillment states are carried over from the payload, anything
        # else records a plain update
        status = (
            order.status
            if order.status
            in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.COMPLETED)
            else OrderStatus.UPDATED
        )
        updated = current.model_copy(
            update={
                "fio": order.fio,
                "email": order.email,
                "phone": order.phone,
                "address": order.address,
                "comment": order.comment,
                "items": order.items,
                "status": status,
                "updated_at": datetime.now(UTC),
            }
        )
        await self.repo.save_order(updated)
        logger.info("Updated order {} to status {}", order_id, status)

    async def cancel_order(self, order_id: int) -> None:
        current = await self.repo.get_order(order_id)
        self._ensure_mutable(current)
        await self.repo.save_order(
            current.model_copy(
                update={
                    "status": OrderStatus.CANCELLED,
                    "updated_at": datetime.now(UTC),
                }
            )
        )
        logger.info("Cancelled order {}", order_id)

    @staticmethod
    def _ensure_mutable(order: Order) -> None:
        if order.status.is_terminal:
            msg = f"order {order.id} is {order.status}"
            raise InvalidStateError(msg, context={"order_id": order.id})
