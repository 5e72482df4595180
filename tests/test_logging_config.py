from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.pipeline", logging.INFO, __file__, 1, "Dropped event", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(device_id="AA:BB", reason="duplicate_sequence", unrelated="x"))

    assert line == "Dropped event | device_id=AA:BB reason=duplicate_sequence"


def test_formatter_skips_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    assert formatter.format(_record(frame_length=None)) == "Dropped event"
