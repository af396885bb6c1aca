"""Request interceptors.

Two layers exist:

- **Application middleware** (``RequestContextMiddleware``,
  ``RequestLoggingMiddleware``) wraps every request, including unmatched
  paths, and handles correlation IDs and access logging.
- **Route chains** (``Chain`` with ``RecoverPanic``, ``MethodNotAllowed``,
  ``AuthMiddleware``) are composed per route at registration time, so the
  set of interceptors guarding an endpoint is visible where it is mounted.
"""
