"""Unit tests for log formatting."""

import json
import logging

from icas.logging import JSONFormatter, get_context_logger


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("icas.flows", logging.WARNING, __file__, 10, "Stage %s finished", ("clerk",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_core_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "icas.flows"
        assert data["message"] == "Stage clerk finished"

    def test_extra_fields_included(self):
        """Test fields passed through ``extra`` appear at the top level."""
        data = json.loads(JSONFormatter().format(make_record(run_id="abc123", degraded_stages=["clerk"])))

        assert data["run_id"] == "abc123"
        assert data["degraded_stages"] == ["clerk"]
        assert "args" not in data
        assert "msg" not in data


class TestContextLogger:
    def test_context_added_to_records(self, caplog):
        log = get_context_logger("icas.tests", run_id="run-1")

        with caplog.at_level(logging.INFO, logger="icas.tests"):
            log.info("Starting document analysis")

        assert caplog.records[0].run_id == "run-1"
