"""Contract of the storage collaborator.

Storage owns identity assignment, slug uniqueness and cascade deletion of
filters. Lookups of absent entities raise ``NotFoundError`` and uniqueness
violations raise ``AlreadyExistsError``.
"""

from collections.abc import Mapping
from typing import Protocol
from uuid import UUID

from catalog.domain.models import Category, Filter, Order


class Repository(Protocol):
    """Storage operations used by the controller.

    Listing methods take ``offset``/``limit`` and return the matching slice
    together with the total number of matches.
    """

    async def list_categories(
        self, offset: int, limit: int
    ) -> tuple[list[Category], int]: ...

    async def search_categories(
        self, query: str, offset: int, limit: int
    ) -> tuple[list[Category], int]: ...

    async def search_filters(
        self, query: str, offset: int, limit: int
    ) -> tuple[list[Filter], int]: ...

    async def get_category(self, slug: str) -> Category: ...

    async def list_category_filters(self, slug: str) -> list[Filter]: ...

    async def create_category(self, category: Category) -> Category: ...

    async def update_category(self, slug: str, category: Category) -> Category: ...

    async def delete_category(self, slug: str) -> None: ...

    async def list_orders(
        self,
        offset: int,
        limit: int,
        filters: Mapping[str, str],
        sort: str,
    ) -> tuple[list[Order], int]: ...

    async def list_user_orders(
        self, user_id: UUID, offset: int, limit: int
    ) -> tuple[list[Order], int]: ...

    async def get_order(self, order_id: int) -> Order: ...

    async def create_order(self, order: Order) -> Order: ...

    async def save_order(self, order: Order) -> Order: ...
