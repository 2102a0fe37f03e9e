"""Test suite for the structured logging module.

Covers:
    - StructuredFormatter JSON output and context fields
    - SimpleFormatter text output
    - Redaction of credential values (the docs API identify key included)
    - setup_logger and configure_root_logger configuration
    - set_log_level for configured levels
"""

import io
import json
import logging
import os
import unittest
from unittest.mock import patch

from tokdocs.shared.utils import logger as logger_module
from tokdocs.shared.utils.logger import (
    SimpleFormatter,
    StructuredFormatter,
    configure_root_logger,
    redact,
    set_log_level,
    setup_logger,
)


def make_record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tokdocs.test",
        level=level,
        pathname="/app/tokdocs/extraction/walker.py",
        lineno=88,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.funcName = "extract_metrics"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter(unittest.TestCase):
    """Test the StructuredFormatter JSON output."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.formatter = StructuredFormatter()

    def test_standard_fields(self) -> None:
        """Test that standard fields are populated."""
        parsed = json.loads(self.formatter.format(make_record("Extracted 3 metrics", logging.WARNING)))

        self.assertEqual(parsed["severity"], "WARNING")
        self.assertEqual(parsed["message"], "Extracted 3 metrics")
        self.assertEqual(parsed["logger"], "tokdocs.test")
        self.assertEqual(parsed["filename"], "walker.py")
        self.assertEqual(parsed["lineno"], 88)
        self.assertEqual(parsed["funcName"], "extract_metrics")
        self.assertIn("timestamp", parsed)

    def test_context_fields(self) -> None:
        """Test that known extra fields are copied into the record."""
        record = make_record("Saved", document="Metrics", metrics_count=12, file_path="guides/auth.md")

        parsed = json.loads(self.formatter.format(record))

        self.assertEqual(parsed["document"], "Metrics")
        self.assertEqual(parsed["metrics_count"], 12)
        self.assertEqual(parsed["file_path"], "guides/auth.md")

    def test_message_redacted(self) -> None:
        """Test that credentials in the message are redacted."""
        parsed = json.loads(self.formatter.format(make_record("GET /doc?identify_key=abc123&doc_id=1")))

        self.assertNotIn("abc123", parsed["message"])
        self.assertIn("identify_key=[REDACTED]", parsed["message"])
        self.assertIn("doc_id=1", parsed["message"])


class TestSimpleFormatter(unittest.TestCase):
    """Test the text formatter."""

    def test_format_contains_message(self) -> None:
        """Test the default text layout."""
        output = SimpleFormatter().format(make_record("Downloaded 42 documents"))

        self.assertIn("tokdocs.test - INFO - extract_metrics:88 - Downloaded 42 documents", output)

    def test_redaction(self) -> None:
        """Test that text output is redacted."""
        output = SimpleFormatter().format(make_record("token: s3cret"))

        self.assertNotIn("s3cret", output)


class TestRedact(unittest.TestCase):
    """Test the redaction patterns."""

    def test_separators(self) -> None:
        """Test 'is', ':' and '=' separators."""
        self.assertEqual(redact("password is hunter2"), "password is [REDACTED]")
        self.assertEqual(redact("api_key: xyz"), "api_key: [REDACTED]")
        self.assertEqual(redact("secret=xyz"), "secret=[REDACTED]")

    def test_case_insensitive(self) -> None:
        """Test that keyword matching ignores case."""
        self.assertEqual(redact("Authorization: Bearer"), "Authorization: [REDACTED]")

    def test_plain_message_untouched(self) -> None:
        """Test that ordinary messages pass through."""
        message = "Indexed 12 files into tiktok_docs"
        self.assertEqual(redact(message), message)


class TestSetupLogger(unittest.TestCase):
    """Test logger configuration."""

    def tearDown(self) -> None:
        """Remove handlers added by the tests."""
        for name in ("tokdocs.test.text", "tokdocs.test.json", "tokdocs.test.reuse"):
            logging.getLogger(name).handlers.clear()

    def test_text_handler(self) -> None:
        """Test that a text formatter is used by default."""
        logger = setup_logger("tokdocs.test.text", json_output=False)

        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0].formatter, SimpleFormatter)

    def test_json_from_environment(self) -> None:
        """Test that LOG_FORMAT=json selects the JSON formatter."""
        with patch.dict(os.environ, {"LOG_FORMAT": "json"}):
            logger = setup_logger("tokdocs.test.json")

        self.assertIsInstance(logger.handlers[0].formatter, StructuredFormatter)

    def test_reuse_updates_level(self) -> None:
        """Test that repeated setup does not duplicate handlers."""
        setup_logger("tokdocs.test.reuse", level=logging.INFO)
        logger = setup_logger("tokdocs.test.reuse", level=logging.DEBUG)

        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)

    def test_level_from_environment(self) -> None:
        """Test LOG_LEVEL handling, including invalid values."""
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}):
            self.assertEqual(setup_logger("tokdocs.test.text").level, logging.WARNING)
        logging.getLogger("tokdocs.test.text").handlers.clear()

        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}):
            self.assertEqual(setup_logger("tokdocs.test.text").level, logging.INFO)

    def test_json_output_written(self) -> None:
        """Test end-to-end JSON output on a stream."""
        logger = setup_logger("tokdocs.test.json", json_output=True)
        stream = io.StringIO()
        logger.handlers[0].setStream(stream)

        logger.info("Wrote %d metric files", 6, extra={"operation": "write"})

        parsed = json.loads(stream.getvalue())
        self.assertEqual(parsed["message"], "Wrote 6 metric files")
        self.assertEqual(parsed["operation"], "write")


class TestConfigureRootLogger(unittest.TestCase):
    """Test root logger configuration."""

    def test_replaces_handlers(self) -> None:
        """Test that existing root handlers are replaced by one."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        self.addCleanup(setattr, root, "handlers", saved_handlers)
        self.addCleanup(root.setLevel, saved_level)
        root.addHandler(logging.NullHandler())

        configure_root_logger(level=logging.WARNING, json_output=True)

        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, StructuredFormatter)
        self.assertEqual(root.level, logging.WARNING)


class TestSetLogLevel(unittest.TestCase):
    """Test applying a configured level to tokdocs loggers."""

    def setUp(self) -> None:
        """Restore INFO on every tokdocs logger afterwards."""
        self.addCleanup(setattr, logger_module, "_configured_level", None)
        self.addCleanup(set_log_level, logging.INFO)
        self.addCleanup(logging.getLogger("tokdocs.test.later").handlers.clear)
        self.addCleanup(logging.getLogger("tokdocs.test.existing").handlers.clear)

    def test_existing_loggers_updated(self) -> None:
        """Test that loggers configured earlier pick up the new level."""
        logger = setup_logger("tokdocs.test.existing", level=logging.INFO)

        self.assertEqual(set_log_level("debug"), logging.DEBUG)
        self.assertEqual(logger.level, logging.DEBUG)

    def test_later_loggers_use_level(self) -> None:
        """Test that the level wins over LOG_LEVEL for loggers created afterwards."""
        set_log_level("WARNING")

        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}):
            logger = setup_logger("tokdocs.test.later")

        self.assertEqual(logger.level, logging.WARNING)

    def test_unknown_name_falls_back_to_info(self) -> None:
        """Test an unrecognized level name."""
        self.assertEqual(set_log_level("LOUD"), logging.INFO)

    def test_other_loggers_untouched(self) -> None:
        """Test that loggers outside tokdocs keep their level."""
        other = logging.getLogger("tokdocsextra.test")
        other.setLevel(logging.ERROR)
        self.addCleanup(other.setLevel, logging.NOTSET)

        set_log_level(logging.DEBUG)

        self.assertEqual(other.level, logging.ERROR)


if __name__ == "__main__":
    unittest.main()
