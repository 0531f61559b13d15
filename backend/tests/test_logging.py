"""
Tests for the structlog setup.
"""

import logging

import structlog

from stagebook.core.logging import get_logger, setup_logging


def _engine_handlers() -> list[logging.Handler]:
    return [
        handler for handler in logging.getLogger().handlers
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
    ]


def test_setup_is_idempotent():
    setup_logging()
    setup_logging()

    assert len(_engine_handlers()) == 1
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_engine_events_carry_bound_context(capsys):
    setup_logging()
    structlog.contextvars.bind_contextvars(request_id="abc123")
    try:
        get_logger("stagebook.services.booking_service").info("booking_confirmed", slot_id=3, booking_id=12)
    finally:
        structlog.contextvars.clear_contextvars()

    out = capsys.readouterr().out
    assert "booking_confirmed" in out
    assert "request_id" in out and "abc123" in out
    assert "slot_id" in out
