"""Domain validation rules applied to decoded request bodies.

Each function raises ``ValidationError`` naming the first offending field,
and returns None when the object is acceptable.
"""

import re
from typing import Final

from catalog.core.exceptions import ValidationError
from catalog.domain.models import Category, Order

SLUG_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_SLUG_LENGTH: Final[int] = 255
MAX_NAME_LENGTH: Final[int] = 255


def category_validation(obj: Category) -> None:
    """Validate a category and its filters.

    Args:
        obj: Decoded category.

    Raises:
        ValidationError: If a rule is violated.
    """
    if not obj.slug:
        raise ValidationError("slug is required", field="slug")
    if len(obj.slug) > MAX_SLUG_LENGTH or not SLUG_PATTERN.match(obj.slug):
        raise ValidationError(
            "slug must contain lowercase letters, digits and single hyphens",
            field="slug",
        )
    if not obj.name.strip():
        raise ValidationError("name is required", field="name")
    if len(obj.name) > MAX_NAME_LENGTH:
        raise ValidationError("name is too long", field="name")

    seen: set[str] = set()
    for filter_ in obj.filters:
        name = filter_.name.strip()
        if not name:
            raise ValidationError("filter name is required", field="filters")
        if name in seen:
            raise ValidationError(f"duplicate filter '{name}'", field="filters")
        seen.add(name)


def order_validation(obj: Order) -> None:
    """Validate an order's contact fields, items and total.

    Args:
        obj: Decoded order.

    Raises:
        ValidationError: If a rule is violated.
    """
    if not obj.fio.strip():
        raise ValidationError("fio is required", field="fio")
    if not obj.email:
        raise ValidationError("email is required", field="email")
    if not EMAIL_PATTERN.match(obj.email):
        raise ValidationError("email is invalid", field="email")
    for item in obj.items:
        if not item.product_slug:
            raise ValidationError("item product_slug is required", field="items")
        if item.quantity < 1:
            raise ValidationError("item quantity must be positive", field="items")
    if obj.total_amount is not None and obj.total_amount < 0:
        raise ValidationError("total_amount must not be negative", field="total_amount")
