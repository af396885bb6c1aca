"""API-related constants."""

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"
AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "

# Routing
CATEGORY_PATH = "/api/category"
ORDER_PATH = "/api/order"
ORDER_PATH_PREFIX = "/api/order/"

# Query parameters
PAGE_PARAM = "page"
SIZE_PARAM = "size"
SORT_PARAM = "sort"
SEARCH_PARAM = "q"
RESERVED_QUERY_PARAMS = frozenset({PAGE_PARAM, SIZE_PARAM, SORT_PARAM})

# Queries shorter than this are answered with an empty result
MIN_SEARCH_QUERY_LENGTH = 3

OK_MESSAGE = "OK"
