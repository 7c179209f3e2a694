"""Tests for the structured logging system (lease_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from lease_kernel.domain.dtos import NotificationKind
from lease_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite configuration."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "lease_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("annuity_marked_paid", extra={"year": 2027, "watermark_advanced": True})

        record = _parse_log(stream)
        assert record["year"] == 2027
        assert record["watermark_advanced"] is True

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(run_id="run-1", contract_id="c-9")
        get_logger("test").info("obligation_notified")

        record = _parse_log(stream)
        assert record["run_id"] == "run-1"
        assert record["contract_id"] == "c-9"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Kernel exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        from lease_kernel.exceptions import AnnuityAlreadyPaidError

        try:
            raise AnnuityAlreadyPaidError("c-1", 2027)
        except AnnuityAlreadyPaidError:
            get_logger("test").error("payment_rejected", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "ANNUITY_ALREADY_PAID"
        assert record["exc_type"] == "AnnuityAlreadyPaidError"
        assert record["exc_contract_id"] == "c-1"
        assert record["exc_year"] == 2027

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "run_id" not in record
        assert "contract_id" not in record

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "typed",
            extra={
                "annuity_id": uid,
                "due_date": date(2026, 1, 15),
                "monthly_rent": Decimal("850.00"),
                "kind": NotificationKind.ANNUITY_EXPIRY,
            },
        )

        record = _parse_log(stream)
        assert record["annuity_id"] == str(uid)
        assert record["due_date"] == "2026-01-15"
        assert record["monthly_rent"] == "850.00"
        assert record["kind"] == "annuity_expiry"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # default level is INFO
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", run_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "run_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(contract_id="outer")
        with LogContext.bind(contract_id="inner"):
            assert LogContext.get_all()["contract_id"] == "inner"
        assert LogContext.get_all()["contract_id"] == "outer"

    def test_bind_restores_none(self):
        assert "run_id" not in LogContext.get_all()
        with LogContext.bind(run_id="temp"):
            assert LogContext.get_all()["run_id"] == "temp"
        assert "run_id" not in LogContext.get_all()

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(run_id="r", tenant="t"):
            assert LogContext.get_all() == {"run_id": "r"}

    def test_all_fields(self):
        LogContext.set(correlation_id="c", contract_id="k", run_id="r", actor_id="a")
        ctx = LogContext.get_all()
        assert len(ctx) == 4
        assert ctx["actor_id"] == "a"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        root = logging.getLogger("lease_kernel")
        # the test runner may attach its own capture handlers
        before = list(root.handlers)
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op

        added = [h for h in root.handlers if h not in before]
        assert added == [h1]
        assert h2 not in root.handlers

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="warning")
        get_logger("test").info("dropped")
        get_logger("test").warning("kept")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["kept"]

    def test_unknown_level_name(self):
        with pytest.raises(ValueError):
            configure_logging(level="LOUD")

    def test_get_logger_returns_child(self):
        assert get_logger("notify.dispatcher").name == "lease_kernel.notify.dispatcher"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("services.annuity_store").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["logger"] == "lease_kernel.services.annuity_store"
