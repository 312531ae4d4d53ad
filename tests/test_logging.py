"""
Tests for the JSON log formatter.
"""
from __future__ import annotations

import json
import logging

from shodhsahayak.core.logging import JsonFormatter, configure_logging


def _record(**extra):
    record = logging.LogRecord("shodhsahayak.services.scrape_logic", logging.WARNING, __file__, 1,
                               "Skipped %s", ("https://tdb.gov.in/",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_record_as_json():
    payload = json.loads(JsonFormatter().format(_record()))

    assert payload["level"] == "WARNING"
    assert payload["module"] == "shodhsahayak.services.scrape_logic"
    assert payload["message"] == "Skipped https://tdb.gov.in/"
    assert payload["timestamp"].endswith("Z")
    assert "source" not in payload


def test_includes_source_extra():
    payload = json.loads(JsonFormatter().format(_record(source="https://tdb.gov.in/")))

    assert payload["source"] == "https://tdb.gov.in/"


def test_configure_logging_installs_one_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        configure_logging("debug")
        configure_logging("info")

        json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
        assert len(json_handlers) == 1
        assert root.level == logging.INFO
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
