"""Tests for loguru sink setup."""

import io

from loguru import logger

from clinical_document_evaluation import configure_logging


def test_configure_logging_filters_by_level():
    stream = io.StringIO()
    handler_id = configure_logging("WARNING", sink=stream)
    try:
        logger.info("routine detail")
        logger.warning("best-effort fallback used")
    finally:
        logger.remove(handler_id)

    output = stream.getvalue()
    assert "best-effort fallback used" in output
    assert "routine detail" not in output
    assert "WARNING" in output
