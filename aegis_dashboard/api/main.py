"""FastAPI application for the Aegis dashboard."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..exceptions import (
    AegisDashboardError,
    AlreadyExistsError,
    IntegrationError,
    MalformedUpstreamDataError,
    MissingCredentialsError,
    NotConfiguredError,
    NotFoundError,
    UpstreamError,
)
from ..utils.config import ensure_runtime_configuration, get_settings
from ..utils.logging import setup_logger
from .responses import error_response

logger = setup_logger(__name__, context={"integration": "FastAPI"})


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """Application lifespan context manager for startup/shutdown."""
    # Startup
    ensure_runtime_configuration(get_settings())
    logger.info("Aegis dashboard API starting up...")
    yield
    # Shutdown
    logger.info("Aegis dashboard API shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Aegis Dashboard API",
    description="Operational dashboard aggregating outages, tickets, alerts and vendor status",
    version="0.1.0",
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return request.headers.get("x-correlation-id") or "-"


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, str(exc), error_type=exc.__class__.__name__)


@app.exception_handler(AlreadyExistsError)
async def already_exists_handler(request: Request, exc: AlreadyExistsError) -> JSONResponse:
    return error_response(status.HTTP_409_CONFLICT, str(exc), error_type=exc.__class__.__name__)


@app.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError) -> JSONResponse:
    """Map integration failures: setup problems are 400, upstream problems 502."""

    if isinstance(exc, (NotConfiguredError, MissingCredentialsError)):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (UpstreamError, MalformedUpstreamDataError)):
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.warning(
        "%s: %s",
        exc.__class__.__name__,
        exc,
        extra={
            "integration": exc.integration,
            "correlation_id": _correlation_id(request),
            "status": "error",
        },
    )
    return error_response(status_code, str(exc), error_type=exc.__class__.__name__)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request body",
        error_type="ValidationError",
        details={"errors": jsonable_errors(exc.errors())},
    )


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request body",
        error_type="ValidationError",
        details={"errors": jsonable_errors(exc.errors())},
    )


# Global exception handler
@app.exception_handler(AegisDashboardError)
async def dashboard_exception_handler(request: Request, exc: AegisDashboardError) -> JSONResponse:
    """Handle any remaining dashboard exceptions."""
    logger.error(
        "AegisDashboardError: %s",
        exc,
        extra={"correlation_id": _correlation_id(request), "status": "error"},
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        error_type=exc.__class__.__name__,
    )


def jsonable_errors(errors: list) -> list[dict[str, object]]:
    """Reduce pydantic error entries to JSON-safe location and message pairs."""

    return [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": str(error.get("msg", ""))}
        for error in errors
    ]


# Import routers
from .routes import (  # noqa: E402
    bridges,
    health,
    metrics,
    outages,
    servicenow,
    solarwinds,
    vendors,
)

app.include_router(health.router, tags=["health"])
app.include_router(metrics.router, tags=["monitoring"])
app.include_router(vendors.router, prefix="/api/vendors", tags=["vendors"])
app.include_router(bridges.router, prefix="/api/collaboration/bridges", tags=["collaboration"])
app.include_router(servicenow.router, prefix="/api/servicenow", tags=["servicenow"])
app.include_router(solarwinds.router, prefix="/api", tags=["solarwinds"])
app.include_router(outages.router, prefix="/api/outages", tags=["outages"])
