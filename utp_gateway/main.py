from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .routers import health, conversion, settlement, payments
from .services.container import build_container
from .services.randomness import RandomSource


def create_app(
    settings_override: Settings | None = None, rng: Optional[RandomSource] = None
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    (zero latency, static prices). rng: seeded random source so references,
    hashes and slippage are reproducible. Run with
    ``uvicorn utp_gateway.main:create_app --factory``.
    """
    settings = settings_override or get_settings()
    if settings_override is not None:
        settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.services = build_container(settings, rng=rng)

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ApiError, errors.api_error_handler)
    app.add_exception_handler(errors.GatewayError, errors.gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(conversion.router)
    app.include_router(settlement.router)
    app.include_router(payments.router)

    @app.get("/")
    async def root():
        return {"message": "UTP payment gateway", "version": settings.version}

    return app
