"""HTTP API layer for the catalog service.

Key components:
- **main**: Application factory and lifecycle management
- **router**: Path and method dispatch onto per-route middleware chains
- **middleware**: Per-route interceptors (panic recovery, method gating,
  authentication) and app-wide Starlette middleware (correlation IDs,
  request logging, exception handlers)
- **handlers**: Category and order handler sets translating HTTP requests
  into controller calls
- **utils**: The response envelope and query-string parsing helpers

Every response, success or failure, is written through the envelope in
``catalog.api.utils.responses`` so clients can branch on the presence of an
``error`` field.
"""
