"""Tests for the log formatting helpers."""

from __future__ import annotations

import logging

import pytest

from shared.logging.logging_setup import BridgeFormatter, ColorLogger


def _record(level: int, msg: str, *args, **attrs) -> logging.LogRecord:
    record = logging.LogRecord("test", level, __file__, 1, msg, args, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def test_formatter_marks_warnings_and_colors_console_lines() -> None:
    console = BridgeFormatter(tz_name="UTC", colored=True, fmt="%(message)s")
    plain = BridgeFormatter(tz_name="UTC", fmt="%(message)s")

    assert console.format(_record(logging.WARNING, "low %s", "disk", color="yellow")) == "\033[33m⚠️ low disk\033[0m"
    assert plain.format(_record(logging.ERROR, "broken", color="red")) == "⛔ broken"
    assert plain.format(_record(logging.INFO, "fine")) == "fine"


def test_formatter_survives_mismatched_args() -> None:
    formatter = BridgeFormatter(tz_name="UTC", fmt="%(message)s")

    assert formatter.format(_record(logging.INFO, "value %d", "not a number")) == "value %d"


def test_color_logger_passes_color_as_extra(caplog: pytest.LogCaptureFixture) -> None:
    logger = ColorLogger(logging.getLogger("vector_memory_bridge.tests.color"))

    with caplog.at_level(logging.INFO, logger="vector_memory_bridge.tests.color"):
        logger.info("booted %d clients", 3, color="green")
        logger.warning("plain")

    assert [record.getMessage() for record in caplog.records] == ["booted 3 clients", "plain"]
    assert caplog.records[0].color == "green"
    assert not hasattr(caplog.records[1], "color")
    assert caplog.records[0].funcName == "test_color_logger_passes_color_as_extra"
