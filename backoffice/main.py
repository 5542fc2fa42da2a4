"""Back office API main application module.

This module builds the FastAPI application and configures core
middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backoffice.api.earnings import router as earnings_router
from backoffice.api.finance import router as finance_router
from backoffice.api.health import router as health_router
from backoffice.api.middleware import setup_middleware
from backoffice.api.orders import router as orders_router
from backoffice.api.payouts import router as payouts_router
from backoffice.application.container import ServiceContainer, build_container
from backoffice.infrastructure.config import Settings, get_settings
from backoffice.infrastructure.logging import configure_logging
from backoffice.infrastructure.repositories import StoreUnavailableError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    container: ServiceContainer = app.state.container
    logger.info(
        "Starting back office API",
        version=container.settings.api_version,
        storage=container.settings.storage_backend,
        debug=container.settings.debug,
    )

    yield

    logger.info("Shutting down back office API")
    await container.close()


def create_app(settings: Settings | None = None, container: ServiceContainer | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use instead of the environment.
        container: Pre-built services, e.g. with test stores.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Back Office API",
        description="Order lifecycle, seller earnings and payouts for a multi-seller marketplace",
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.container = container or build_container(settings)

    # CORS middleware (must be added before custom middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware (request ID, API key auth, error handling)
    setup_middleware(app, api_key=settings.api_key)

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(orders_router)
    app.include_router(earnings_router)
    app.include_router(payouts_router)
    app.include_router(finance_router)

    register_exception_handlers(app)
    return app


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent format."""
        request_id = getattr(request.state, "request_id", None)

        detail = exc.detail
        if isinstance(detail, dict):
            error_code = detail.get("error_code", "ERROR")
            message = detail.get("message", str(detail))
            details = detail.get("details", {})
        else:
            error_code = "ERROR"
            message = str(detail)
            details = {}

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error_code": error_code,
                "message": message,
                "details": details,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error_code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": jsonable_errors(exc)},
                "request_id": getattr(request.state, "request_id", None),
            },
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error("Store unavailable", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=503,
            content={
                "error_code": "STORE_UNAVAILABLE",
                "message": "The data store is temporarily unavailable",
                "details": {},
                "request_id": getattr(request.state, "request_id", None),
            },
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": [str(part) for part in error.get("loc", ())], "message": error.get("msg", "")}
        for error in exc.errors()
    ]


app = create_app()
