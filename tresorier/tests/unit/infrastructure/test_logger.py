"""
Unit tests for structured logging.

Usage:
    python -m pytest tresorier/tests/unit/infrastructure/test_logger.py
"""

import json
import logging

from tests.base import TresorierTest
from tresorier.infrastructure.monitoring.logger import (
    JSONFormatter,
    log_performance,
    redact,
    request_id_ctx,
    set_request_id,
)


class TestLogger(TresorierTest):
    """Unit tests for the JSON formatter and helpers."""

    component_name = "tresorier"
    test_category = "unit"

    # ================================================================
    # Helper Methods
    # ================================================================

    def _record(self, level=logging.INFO, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            "tresorier.test", level, __file__, 10, "Payout created", (), None
        )
        record.__dict__.update(extra)
        return record

    # ================================================================
    # Test Methods
    # ================================================================

    def test_redacts_sensitive_fields(self):
        """Test codes are hidden and account numbers keep four digits."""
        self.reporter.info("Testing log redaction", context="Test")

        assert redact("code", "123456") == "[redacted]"
        assert redact("account_number", "123456789012") == "********9012"
        assert redact("entry_id", "abc") == "abc"

    def test_formatter_emits_json_with_extras(self):
        """Test extras and the bound request id reach the document."""
        token = request_id_ctx.set(None)
        try:
            set_request_id("req-42")
            line = JSONFormatter().format(
                self._record(entry_id="e-1", account_number="555566667777")
            )
        finally:
            request_id_ctx.reset(token)

        payload = json.loads(line)

        assert payload["service"] == "tresorier"
        assert payload["message"] == "Payout created"
        assert payload["request_id"] == "req-42"
        assert payload["entry_id"] == "e-1"
        assert payload["account_number"] == "********7777"
        assert "source" not in payload

    def test_warnings_carry_source(self):
        """Test warning records point at their origin."""
        payload = json.loads(JSONFormatter().format(self._record(logging.WARNING)))

        assert payload["level"] == "WARNING"
        assert "source" in payload

    def test_log_performance_records_duration(self, caplog):
        """Test the timed block logs its duration at DEBUG."""
        logger = logging.getLogger("tresorier.test.performance")

        with caplog.at_level(logging.DEBUG, logger=logger.name):
            with log_performance(logger, "payout.transfer", entry_id="e-2"):
                pass

        record = caplog.records[-1]
        assert record.operation == "payout.transfer"
        assert record.entry_id == "e-2"
        assert record.duration_ms >= 0


if __name__ == "__main__":
    TestLogger.run_as_main()
