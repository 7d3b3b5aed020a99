"""Custom middleware for FastAPI."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from booking_core.config import get_settings
from booking_core.utils.logging import get_logger, log_error, log_request, set_request_id

logger = get_logger("middleware")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID to all requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate or get request ID from header
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        set_request_id(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request processing time."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )

        response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

        return response


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log unhandled exceptions."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            log_error(
                e,
                context={
                    "method": request.method,
                    "path": request.url.path,
                    "client_ip": request.client.host if request.client else None,
                },
            )
            raise


def setup_cors_middleware(app: ASGIApp) -> None:
    """Set up CORS middleware."""
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        max_age=settings.cors.max_age,
    )
    logger.info(
        f"CORS middleware configured: origins={settings.cors.origins}, "
        f"methods={settings.cors.allow_methods}"
    )


def setup_middleware(app: ASGIApp) -> None:
    """Set up all middleware for the FastAPI application.

    Middleware executes in reverse order of registration:
    1. ErrorLogging - logs unhandled errors
    2. Timing - logs request duration
    3. RequestID - generates/uses request IDs
    4. CORS - first to execute, handles preflight
    """
    # CORS must be first (last in list) to handle preflight requests
    setup_cors_middleware(app)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(ErrorLoggingMiddleware)

    logger.info("Middleware configured: CORS, RequestID, Timing, ErrorLogging")
