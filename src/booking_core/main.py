"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Application metadata and OpenAPI documentation
- Middleware (CORS, RequestID, Timing, ErrorLogging)
- Exception handlers (APIException, HTTPException, ValidationError, general)
- API routers (v1)
- Health check endpoints (/health, /ready)
- Startup/shutdown lifecycle management (database)
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_core.api.v1.router import router as v1_router
from booking_core.config import get_settings
from booking_core.database import check_connection, close_db, init_db
from booking_core.exceptions import APIException
from booking_core.middleware import setup_middleware
from booking_core.utils.logging import get_logger, log_error, setup_logging

# Set up logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool on startup and dispose of it on shutdown."""
    logger.info("Starting booking core service...")
    try:
        await init_db()
        logger.info("Booking core service started successfully")
        yield
    except Exception as e:
        logger.error(f"Failed to start booking core service: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down booking core service...")
        try:
            await close_db()
            logger.info("Booking core service shut down successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)


app = FastAPI(
    title="Booking Core",
    description=(
        "Scheduling and availability engine: bookable slots, conflict checks, "
        "single and recurring appointment booking, staff time off."
    ),
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    debug=settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "availability", "description": "Bookable slots and weekly open hours"},
        {"name": "appointments", "description": "Booking, rescheduling and checkout holds"},
        {"name": "time-off", "description": "Staff time off and conflict checks"},
        {"name": "v1", "description": "API v1 information and metadata"},
    ],
)

setup_middleware(app)

app.include_router(v1_router)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle custom API exceptions."""
    context = {
        "method": request.method,
        "path": request.url.path,
        "status_code": exc.status_code,
        "code": exc.code,
    }
    if exc.status_code >= 500:
        log_error(exc, context=context)
    else:
        # Client errors (lost races, bad input) are expected traffic
        logger.warning(
            f"{exc.code}: {request.method} {request.url.path} - {exc.message}",
            extra={"extra_fields": context},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions (404, etc.)."""
    if exc.status_code == 404:
        logger.warning(
            f"404 Not Found: {request.method} {request.url.path}",
            extra={"extra_fields": {"method": request.method, "path": request.url.path}},
        )
    else:
        log_error(
            exc,
            context={
                "method": request.method,
                "path": request.url.path,
                "status_code": exc.status_code,
            },
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.detail,
                "code": "HTTP_ERROR",
                "status_code": exc.status_code,
                "details": {},
            }
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]

    logger.warning(
        f"Validation error: {request.method} {request.url.path}",
        extra={"extra_fields": {"path": request.url.path, "validation_errors": errors}},
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "message": "Validation failed",
                "code": "VALIDATION_ERROR",
                "status_code": 422,
                "details": {"validation_errors": errors},
            }
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    log_error(
        exc,
        context={
            "method": request.method,
            "path": request.url.path,
            "unhandled": True,
        },
    )

    # Don't expose internal error details in production
    message = "An internal server error occurred" if settings.is_production else str(exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "message": message,
                "code": "INTERNAL_SERVER_ERROR",
                "status_code": 500,
                "details": {} if settings.is_production else {"exception_type": type(exc).__name__},
            }
        },
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "environment": settings.environment.value,
    }


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint with database connectivity check."""
    db_connected = await check_connection()

    if not db_connected:
        logger.warning("Readiness check failed: database not connected")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "app_name": settings.app_name,
                "environment": settings.environment.value,
                "database": "disconnected",
            },
        )

    return {
        "status": "ready",
        "app_name": settings.app_name,
        "environment": settings.environment.value,
        "database": "connected",
    }
