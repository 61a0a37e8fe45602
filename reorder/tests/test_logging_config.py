"""
Tests for structured, category-tagged logging.
"""

import io
import json
import logging

from reorder.core.corrections import DATA_CORRUPTION, INSERT_CORRECTION
from reorder.logging_config import get_logger, log_event, quieted, setup_logging


def test_json_lines_carry_category_and_trace_id():
    stream = io.StringIO()
    setup_logging("INFO", "json", stream=stream)

    log_event(get_logger("reorder.test", trace_id=429854), INSERT_CORRECTION, "order -1 -> 0")

    record = json.loads(stream.getvalue().strip())
    assert record["category"] == INSERT_CORRECTION
    assert record["trace_id"] == "429854"
    assert record["message"] == "order -1 -> 0"
    assert record["level"] == "INFO"
    assert record["logger"] == "reorder.test"
    assert "timestamp" in record


def test_text_lines_are_greppable():
    stream = io.StringIO()
    setup_logging("INFO", "text", stream=stream)

    log_event(get_logger("reorder.test", trace_id=7), DATA_CORRUPTION, "line missing", logging.ERROR)

    line = stream.getvalue()
    assert "[data-corruption] line missing" in line
    assert "[trace_id=7]" in line
    assert "ERROR" in line


def test_untagged_records_get_defaults():
    stream = io.StringIO()
    setup_logging("DEBUG", "text", stream=stream)

    logging.getLogger("other").info("plain")

    assert "[-] plain [trace_id=N/A]" in stream.getvalue()


def test_level_filters_records():
    stream = io.StringIO()
    setup_logging("WARNING", "json", stream=stream)

    log_event(logging.getLogger("reorder.test"), INSERT_CORRECTION, "quiet")

    assert stream.getvalue() == ""


def test_setup_replaces_handlers():
    setup_logging("INFO", "json", stream=io.StringIO())
    setup_logging("INFO", "json", stream=io.StringIO())

    assert len(logging.getLogger().handlers) == 1


def test_quieted_restores_levels():
    stream = io.StringIO()
    setup_logging("INFO", "text", stream=stream)
    logging.getLogger("reorder.driver").setLevel(logging.DEBUG)

    with quieted("reorder.driver", "reorder.replay"):
        log_event(get_logger("reorder.driver"), INSERT_CORRECTION, "planned only")
        log_event(get_logger("reorder.replay.engine"), INSERT_CORRECTION, "planned only")

    assert stream.getvalue() == ""
    assert logging.getLogger("reorder.driver").level == logging.DEBUG
    assert logging.getLogger("reorder.replay").level == logging.NOTSET
    logging.getLogger("reorder.driver").setLevel(logging.NOTSET)
