"""Utility functions."""

from booking_core.utils.logging import (
    bind_log_context,
    get_logger,
    log_error,
    log_fields,
    log_request,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "bind_log_context",
    "log_fields",
    "log_request",
    "log_error",
]
