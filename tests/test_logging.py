"""Tests for logging configuration."""

import json
import logging

from booking_core import config
from booking_core.utils import logging as logging_utils
from booking_core.utils.logging import (
    JSONFormatter,
    StandardFormatter,
    bind_log_context,
    get_logger,
    log_fields,
    set_request_id,
    setup_logging,
)


def test_get_logger():
    """Test that get_logger returns correct logger."""
    logger = get_logger("test")

    assert isinstance(logger, logging.Logger)
    assert logger.name == "booking_core.test"


def test_setup_logging(monkeypatch):
    """Test that logging is configured correctly."""
    # Clear log_level env var to use default
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    # Clear singletons to get fresh settings and a fresh logger
    monkeypatch.setattr(config, "_settings", None)
    monkeypatch.setattr(logging_utils, "_logger", None)

    setup_logging()

    logger = logging.getLogger("booking_core")
    assert logger.level == logging.INFO  # Default log level
    assert len(logger.handlers) > 0
    assert logger.propagate is False


def test_json_formatter_includes_extra_fields_and_request_id():
    set_request_id("req-123")
    record = logging.LogRecord(
        name="booking_core.booking",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Lost race booking staff %s",
        args=("staff-1",),
        exc_info=None,
    )
    record.extra_fields = {"staff_id": "staff-1", "code": "SLOT_UNAVAILABLE"}

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "Lost race booking staff staff-1"
    assert payload["level"] == "WARNING"
    assert payload["request_id"] == "req-123"
    assert payload["staff_id"] == "staff-1"
    assert payload["code"] == "SLOT_UNAVAILABLE"


def make_record(message="Booked appointment", **extra):
    record = logging.LogRecord(
        name="booking_core.services.booking_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_log_fields_drops_unset_identifiers():
    assert log_fields(staff_id="staff-1", series_id=None) == {"extra_fields": {"staff_id": "staff-1"}}


def test_bound_context_reaches_every_record_in_the_block():
    with bind_log_context(staff_id="staff-1", series_id=None):
        with bind_log_context(appointment_id="appt-1"):
            inner = json.loads(JSONFormatter().format(make_record()))
        outer = json.loads(JSONFormatter().format(make_record(**log_fields(start_at="15:00"))))
    after = json.loads(JSONFormatter().format(make_record()))

    assert inner["staff_id"] == "staff-1"
    assert inner["appointment_id"] == "appt-1"
    assert "series_id" not in inner
    assert outer["staff_id"] == "staff-1"
    assert outer["start_at"] == "15:00"
    assert "appointment_id" not in outer
    assert "staff_id" not in after


def test_standard_formatter_appends_identifiers():
    with bind_log_context(staff_id="staff-1"):
        line = StandardFormatter().format(make_record(**log_fields(appointment_id="appt-1")))

    assert line.endswith("Booked appointment (staff_id=staff-1, appointment_id=appt-1)")
    assert StandardFormatter().format(make_record()).endswith("- Booked appointment")
