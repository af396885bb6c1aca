"""Shared building blocks used by every layer of the catalog service.

- **config**: Pydantic Settings with nested sections and pagination defaults
- **context**: Request-scoped correlation ID and authenticated user
- **exceptions**: Error hierarchy whose classes map one-to-one onto
  transport outcomes
- **error_context**: Redaction of sensitive values before logging
- **logging**: Loguru configuration and standard-library interception
- **observability**: OpenTelemetry tracing and request metrics
"""
