"""Unit tests for the structured JSON log format"""

import json
import logging
from fiado_ledger.config import settings
from fiado_ledger.infrastructure.observability.logging import CustomJsonFormatter


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("fiado_ledger", logging.WARNING, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_service_metadata():
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

    line = json.loads(formatter.format(_record("Credit limit exceeded", request_id="req-1", step="credit_rejected")))

    assert line["message"] == "Credit limit exceeded"
    assert line["level"] == "WARNING"
    assert line["service"] == settings.service_name
    assert line["timestamp"]
    assert line["request_id"] == "req-1"
    assert line["step"] == "credit_rejected"
