"""Query-string parsing that falls back to defaults instead of failing."""

from starlette.datastructures import QueryParams

from catalog.api.constants import PAGE_PARAM, RESERVED_QUERY_PARAMS, SIZE_PARAM


def parse_positive_int(params: QueryParams, key: str, default: int) -> int:
    """Read a positive integer query parameter.

    Args:
        params: The request's query parameters.
        key: Parameter name.
        default: Value used when the parameter is absent, unparsable or
            not positive.

    Returns:
        int: The parsed value or ``default``.
    """
    try:
        value = int(params.get(key, ""))
    except ValueError:
        return default
    return value if value > 0 else default


def parse_pagination(
    params: QueryParams, default_page: int, default_size: int, max_size: int
) -> tuple[int, int]:
    """Read ``page`` and ``size``, defaulting silently and capping the size.

    Returns:
        tuple[int, int]: The effective page and size.
    """
    page = parse_positive_int(params, PAGE_PARAM, default_page)
    size = parse_positive_int(params, SIZE_PARAM, default_size)
    return page, min(size, max_size)


def parse_filters(params: QueryParams) -> dict[str, str]:
    """Collect every non-pagination query parameter as an equality filter.

    When a key repeats, the last value wins.
    """
    return {
        key: value
        for key, value in params.multi_items()
        if key not in RESERVED_QUERY_PARAMS
    }
