"""EcoConsole Core API - Main Application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ecoconsole_core import __version__
from ecoconsole_core.api.middleware.request_context import RequestContextMiddleware
from ecoconsole_core.api.routes import applications as applications_routes
from ecoconsole_core.api.routes import campaigns as campaigns_routes
from ecoconsole_core.api.routes import copywriting as copywriting_routes
from ecoconsole_core.api.routes import dashboard as dashboard_routes
from ecoconsole_core.api.routes import partners as partners_routes
from ecoconsole_core.config import get_settings
from ecoconsole_core.domain.errors import DomainError, UpstreamError
from ecoconsole_core.infra.db import dispose_engine
from ecoconsole_core.observability import configure_logging, get_logger

logger = get_logger(__name__)

SERVICE_NAME = "ecoconsole-core"
SERVER_ERROR_MESSAGE = "An internal server error occurred."


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    app.state.settings = settings
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service_name=SERVICE_NAME,
    )
    logger.info("service starting", version=__version__)
    yield
    # Shutdown
    dispose_engine()


app = FastAPI(
    title="EcoConsole Core API",
    description="Partner onboarding, campaign verification and dashboard API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Binds the request id for structured logging
app.add_middleware(RequestContextMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to ``{"error": message}`` with their status code."""
    if isinstance(exc, UpstreamError):
        logger.error(
            "upstream failure",
            error=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors such as 404 and 405 in the same envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies and parameters as 400."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Hide database failures behind a generic 500."""
    logger.error("database error", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": SERVER_ERROR_MESSAGE},
    )


# Include API routers
app.include_router(applications_routes.router)
app.include_router(partners_routes.router)
app.include_router(campaigns_routes.router)
app.include_router(dashboard_routes.router)
app.include_router(copywriting_routes.router)


@app.get("/healthz")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True, "service": SERVICE_NAME}
