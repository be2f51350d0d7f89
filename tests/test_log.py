"""Tests for the JSON log formatter (xtrn/log.py)."""

import json
import logging

from xtrn.log import JSONLogFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="xtrn.server",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Tool call %s",
        args=("completed",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONLogFormatter:
    def test_base_fields(self):
        entry = json.loads(JSONLogFormatter().format(make_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "xtrn.server"
        assert entry["message"] == "Tool call completed"
        assert "timestamp" in entry

    def test_event_data_is_merged(self):
        record = make_record(event_data={"tool": "search", "caller": "alice"})

        entry = json.loads(JSONLogFormatter().format(record))

        assert entry["tool"] == "search"
        assert entry["caller"] == "alice"

    def test_output_is_a_single_line(self):
        record = make_record(event_data={"note": "multi\nline"})

        assert "\n" not in JSONLogFormatter().format(record)
