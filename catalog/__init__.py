"""Catalog - category and order backend service.

The service exposes an HTTP API over two resources: catalog categories
(with their filters) and customer orders.

Architecture Overview:
- **API Layer**: FastAPI application, explicit per-route middleware chains,
  handlers translating HTTP requests into controller calls
- **Core Layer**: Configuration, request context, exceptions, logging and
  observability shared by every layer
- **Domain Layer**: Models, validation rules and the controller contract with
  its order lifecycle
- **Infrastructure Layer**: Storage and identity-provider adapters

Handlers never talk to storage or the identity provider directly except
through the protocols declared in the domain layer, which keeps every
collaborator replaceable in tests.
"""
