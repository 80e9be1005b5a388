"""Property-based tests for structured logging."""

import json
import logging
import sys

from hypothesis import given
from hypothesis import strategies as st

from rss_slack_bot.logging_config import StructuredFormatter, create_execution_logger


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestLoggingProperties:
    """Property-based tests for logging functionality."""

    @given(
        st.text(min_size=1, max_size=50),
        st.text(min_size=1, max_size=200),
        st.integers(min_value=0, max_value=500),
        st.integers(min_value=0, max_value=500),
    )
    def test_feed_log_entries_carry_context_property(
        self, execution_id, feed_url, items_count, new_items
    ):
        """
        Every feed log entry is valid JSON carrying the execution context and
        feed fields.
        """
        logger = create_execution_logger("sync", execution_id)
        handler = CaptureHandler()
        logger.logger.addHandler(handler)
        logger.logger.setLevel(logging.INFO)

        try:
            logger.log_feed_processing(feed_url, items_count, new_items)
        finally:
            logger.logger.removeHandler(handler)

        assert len(handler.records) == 1
        entry = json.loads(StructuredFormatter().format(handler.records[0]))
        assert entry["execution_id"] == execution_id
        assert entry["component"] == "sync"
        assert entry["feed_url"] == feed_url
        assert entry["new_items"] == new_items
        assert entry["logger"] == "rss_slack_bot.sync"
        assert entry["level"] == "INFO"

    def test_generated_execution_id(self):
        logger = create_execution_logger("main")

        assert logger.execution_id.startswith("exec_")

    def test_exception_info_is_formatted(self):
        try:
            raise ValueError("broken feed")
        except ValueError:
            record = logging.LogRecord(
                "rss_slack_bot.sync",
                logging.ERROR,
                __file__,
                1,
                "failure",
                None,
                exc_info=sys.exc_info(),
            )

        entry = json.loads(StructuredFormatter().format(record))

        assert "ValueError: broken feed" in entry["exception"]
