"""Tests for the structured logging system (budget_kernel/logging_config.py)."""

import json
import logging
import threading
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

import budget_kernel.logging_config as logging_config
from budget_kernel.exceptions import AccountNotFoundError, SnapshotNotFoundError
from budget_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Start unconfigured; restore the suite-wide DEBUG setup afterwards."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def stream():
    """Configure logging into a buffer and return it."""
    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    configure_logging(handler=handler, level=logging.DEBUG)
    return buffer


def _records(buffer: StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def test_envelope(self, stream):
        get_logger("services.snapshot").info("snapshot_frozen")

        (record,) = _records(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "snapshot_frozen"
        assert record["logger"] == "budget_kernel.services.snapshot"
        assert record["ts"].endswith("+00:00")

    def test_extra_values_serialized(self, stream):
        entry_id = uuid4()
        get_logger("test").info(
            "charge_applied",
            extra={
                "entry_id": entry_id,
                "amount": Decimal("-800.00"),
                "due_date": date(2025, 2, 5),
                "applied": 1,
            },
        )

        (record,) = _records(stream)
        assert record["entry_id"] == str(entry_id)
        assert record["amount"] == "-800.00"
        assert record["due_date"] == "2025-02-05"
        assert record["applied"] == 1

    def test_context_takes_precedence_over_extra(self, stream):
        with LogContext.bind(cycle_label="2025-01"):
            get_logger("test").info("msg", extra={"cycle_label": "1999-01", "status": "ok"})

        (record,) = _records(stream)
        assert record["cycle_label"] == "2025-01"
        assert record["status"] == "ok"

    def test_plain_exception(self, stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        (record,) = _records(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_kernel_exception_fields(self, stream):
        try:
            raise SnapshotNotFoundError("user-1", "2025-01")
        except SnapshotNotFoundError:
            get_logger("test").warning("snapshot_missing", exc_info=True)

        (record,) = _records(stream)
        assert record["exc_code"] == "SNAPSHOT_NOT_FOUND"
        assert record["exc_user_id"] == "user-1"
        assert record["exc_cycle_label"] == "2025-01"

    def test_kernel_exception_none_attribute(self, stream):
        try:
            raise AccountNotFoundError(None, "user-9")
        except AccountNotFoundError:
            get_logger("test").warning("no_account", exc_info=True)

        (record,) = _records(stream)
        assert record["exc_code"] == "ACCOUNT_NOT_FOUND"
        assert record["exc_account_id"] is None
        assert record["exc_user_id"] == "user-9"

    def test_formatter_standalone(self):
        record = logging.LogRecord("budget_kernel.x", logging.WARNING, __file__, 1, "m %s", ("a",), None)
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["message"] == "m a"
        assert parsed["level"] == "WARNING"


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_set_merges(self):
        LogContext.set(correlation_id="c1")
        LogContext.set(user_id="u1", cycle_label=None)
        assert LogContext.get_all() == {"correlation_id": "c1", "user_id": "u1"}

    def test_clear(self):
        LogContext.set(charge_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_nested_bind_restores(self):
        with LogContext.bind(user_id="u1", cycle_label="2025-01"):
            with LogContext.bind(charge_id="ch-1"):
                assert LogContext.get_all() == {
                    "user_id": "u1", "cycle_label": "2025-01", "charge_id": "ch-1",
                }
            assert "charge_id" not in LogContext.get_all()
        assert LogContext.get_all() == {}

    def test_bind_overrides_then_restores(self):
        LogContext.set(cycle_label="2024-12")
        with LogContext.bind(cycle_label="2025-01"):
            assert LogContext.get_all()["cycle_label"] == "2025-01"
        assert LogContext.get_all()["cycle_label"] == "2024-12"

    def test_values_stringified(self):
        uid = uuid4()
        with LogContext.bind(user_id=uid):
            assert LogContext.get_all() == {"user_id": str(uid)}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.bind(account_id="a1")

    def test_threads_do_not_share_context(self):
        seen = {}

        def _worker():
            seen["worker"] = LogContext.get_all()
            LogContext.set(user_id="worker-user")

        LogContext.set(user_id="main-user")
        thread = threading.Thread(target=_worker)
        thread.start()
        thread.join()

        assert seen["worker"] == {}
        assert LogContext.get_all() == {"user_id": "main-user"}


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_first_call_wins(self):
        first, second = StringIO(), StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)

        get_logger("test").info("once")

        structured = [
            h for h in logging.getLogger("budget_kernel").handlers
            if isinstance(h.formatter, StructuredFormatter)
        ]
        assert logging_config._configured is True
        assert len(structured) == 1
        assert "once" in first.getvalue()
        assert second.getvalue() == ""

    def test_level_name_from_config(self):
        buffer = StringIO()
        configure_logging(stream=buffer, level="warning")

        get_logger("test").info("hidden")
        get_logger("test").warning("shown")

        messages = [r["message"] for r in _records(buffer)]
        assert messages == ["shown"]

    def test_does_not_propagate_to_root(self, stream):
        assert logging.getLogger("budget_kernel").propagate is False

    def test_child_logger_names(self, stream):
        get_logger("services.charge_application").debug("charge_skipped")

        (record,) = _records(stream)
        assert record["logger"] == "budget_kernel.services.charge_application"
