"""Unit tests for JSON logging setup."""

import json
import logging

from scripts.ado_report.logging_config import JsonFormatter, configure_logging


def _record(**extra):
    record = logging.LogRecord("ado_report.http", logging.WARNING, __file__, 1, "GET %s failed", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_extra_fields():
    line = JsonFormatter().format(_record(attempt=2, status=503, outcome="retry", ignored="no"))

    entry = json.loads(line)
    assert entry["message"] == "GET x failed"
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "ado_report.http"
    assert (entry["attempt"], entry["status"], entry["outcome"]) == (2, 503, "retry")
    assert "ignored" not in entry


def test_configure_logging_writes_to_log_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    configure_logging("debug", log_file=log_file)

    logging.getLogger("ado_report.job").info("hello", extra={"run_id": "r1"})
    for handler in logging.getLogger("ado_report").handlers:
        handler.flush()

    entry = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert entry["message"] == "hello"
    assert entry["run_id"] == "r1"
    assert logging.getLogger("ado_report").level == logging.DEBUG
