"""FastAPI application factory.

``create_app`` wires configuration, logging, tracing, metrics, the
collaborators and the explicit route table. Collaborators can be injected,
which is how tests run the full HTTP surface against fakes.

Application-wide middleware (correlation ID, access logging) wraps every
request; per-route chains (recovery, method check, authentication) are
composed when the routes are registered.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from catalog.api.handlers.category import CategoryHandler, register_category_routes
from catalog.api.handlers.order import OrderHandler, register_order_routes
from catalog.api.middleware.auth import AuthMiddleware
from catalog.api.middleware.error_handler import register_exception_handlers
from catalog.api.middleware.request_context import RequestContextMiddleware
from catalog.api.middleware.request_logging import RequestLoggingMiddleware
from catalog.api.router import Router
from catalog.api.utils.responses import ORJSONResponse
from catalog.core.config import Settings, get_settings
from catalog.core.logging import setup_logging
from catalog.core.observability import (
    MetricsSink,
    build_metrics_sink,
    instrument_app,
    setup_metrics,
    setup_tracing,
)
from catalog.domain.controller import CatalogController, Controller
from catalog.domain.identity import IdentityProvider
from catalog.infrastructure.identity import HttpIdentityProvider
from catalog.infrastructure.memory import InMemoryRepository


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Closes the identity provider's HTTP client on shutdown when the
    application created it.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.
    """
    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown initiated")
    identity_client: HttpIdentityProvider | None = getattr(
        app_instance.state, "identity_client", None
    )
    if identity_client is not None:
        await identity_client.aclose()
    logger.info("Application shutdown complete")


def build_router(
    controller: Controller,
    identity: IdentityProvider,
    metrics: MetricsSink,
    settings: Settings,
) -> Router:
    """Build the route table.

    Args:
        controller: Business controller shared by all handlers.
        identity: Identity provider for authentication and guest checkout.
        metrics: Sink receiving one observation per handled request.
        settings: Application settings.

    Returns:
        Router: Routes in match order.
    """
    router = Router()
    auth = AuthMiddleware(identity)

    register_category_routes(
        router,
        CategoryHandler(controller, metrics, settings.pagination),
        auth,
    )
    register_order_routes(
        router,
        OrderHandler(controller, identity, metrics, settings.pagination),
        auth,
    )
    return router


def create_app(
    settings: Settings | None = None,
    *,
    controller: Controller | None = None,
    identity: IdentityProvider | None = None,
    metrics: MetricsSink | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        controller: Business controller; defaults to one backed by in-memory
            storage.
        identity: Identity provider; defaults to the HTTP client configured
            by ``settings.identity_config``.
        metrics: Metrics sink; defaults to the one selected by configuration.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)
    setup_metrics(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=None,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    if controller is None:
        controller = CatalogController(InMemoryRepository())
    if identity is None:
        identity = HttpIdentityProvider(settings.identity_config)
        application.state.identity_client = identity
    if metrics is None:
        metrics = build_metrics_sink(settings)

    register_exception_handlers(application)

    # Middleware run in reverse order of registration
    application.add_middleware(
        RequestLoggingMiddleware,
        log_config=settings.log_config,
        trust_proxy_headers=settings.environment == "production",
    )
    application.add_middleware(RequestContextMiddleware)

    @application.get("/health")
    async def health() -> dict[str, object]:
        """Liveness probe for container orchestration and load balancers."""
        return {"status": "healthy", "version": settings.app_version}

    build_router(controller, identity, metrics, settings).mount(application)

    instrument_app(application, settings)

    return application


app = create_app()
