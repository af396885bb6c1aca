"""Domain models for categories, filters, orders and paginated results.

Models are permissive about content and strict about types: decoding a
request body only checks shapes, while business rules live in
``catalog.domain.validation``.
"""

from datetime import datetime
from enum import StrEnum
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Filter(BaseModel):
    """A facet of a category with its permissible values."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    values: list[str] = Field(default_factory=list)
    category_slug: str | None = Field(
        default=None,
        description="Owning category, filled in by storage",
    )


class Category(BaseModel):
    """A catalog category identified by its URL-safe slug."""

    model_config = ConfigDict(extra="ignore")

    slug: str = ""
    name: str = ""
    description: str = ""
    filters: list[Filter] = Field(default_factory=list)


class OrderStatus(StrEnum):
    """Lifecycle states of an order.

    ``CREATED`` is the initial state, ``UPDATED`` is reentrant and
    ``CANCELLED`` is terminal. The fulfillment states are driven by the
    controller and accept updates like ``UPDATED`` does.
    """

    CREATED = "created"
    UPDATED = "updated"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is OrderStatus.CANCELLED


class OrderItem(BaseModel):
    """A product line within an order."""

    product_slug: str = ""
    quantity: int = 1


class Order(BaseModel):
    """A customer order.

    ``fio`` carries the customer's full name. ``user_id`` stays empty until
    the order is created under a resolved or provisioned owner.
    """

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    user_id: UUID | None = None
    fio: str = ""
    email: str = ""
    phone: str | None = None
    address: str | None = None
    comment: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float | None = None
    status: OrderStatus = OrderStatus.CREATED
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Page(BaseModel, Generic[T]):
    """One page of a listing together with the total number of matches."""

    page: int = Field(ge=1)
    size: int = Field(ge=1)
    data: list[T] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
