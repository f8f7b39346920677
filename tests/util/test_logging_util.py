"""Tests for logging helpers."""

import logging

from util.logging_util import _truncate_params, log_remote_call, setup_logger


def test_setup_logger_adds_one_handler():
    logger = setup_logger("tests.util.once")
    setup_logger("tests.util.once")
    assert len(logger.handlers) == 1


def test_truncate_params():
    params = {"content": "x" * 500, "title": "short", "limit": 5}

    truncated = _truncate_params(params)

    assert truncated["content"] == "x" * 200 + "..."
    assert truncated["title"] == "short"
    assert truncated["limit"] == 5


def test_log_remote_call(caplog):
    logger = logging.getLogger("tests.util.remote")
    logger.propagate = True

    with caplog.at_level(logging.DEBUG, logger="tests.util.remote"):
        log_remote_call(logger, "reader_move_document", {"document_id": "abc"}, 12.5)

    assert "Tool: reader_move_document" in caplog.text
    assert "(12.50ms)" in caplog.text
    assert "abc" in caplog.text
