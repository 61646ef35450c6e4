"""Tests for promptforge.logging module."""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile

from promptforge.logging import (
    DEFAULT_FORMAT,
    VERBOSE_FORMAT,
    JsonFormatter,
    get_logger,
    setup_logging,
)


def _stream_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.FileHandler)
    ]


class TestGetLogger:
    """Tests for the get_logger factory function."""

    def test_returns_correct_namespace(self) -> None:
        """get_logger('resolver') returns a logger named 'promptforge.resolver'."""
        assert get_logger("resolver").name == "promptforge.resolver"

    def test_returns_logger_instance(self) -> None:
        assert isinstance(get_logger("test"), logging.Logger)

    def test_child_of_promptforge(self) -> None:
        """Returned logger is a child of the 'promptforge' root logger."""
        _parent = logging.getLogger("promptforge")
        lg = get_logger("compiler")
        assert lg.parent is not None
        assert lg.parent.name == "promptforge"


class TestSetupLogging:
    """Tests for the setup_logging configuration function."""

    def _cleanup_promptforge_logger(self) -> None:
        """Remove all handlers from the promptforge logger."""
        logger = logging.getLogger("promptforge")
        for h in logger.handlers:
            h.close()
        logger.handlers.clear()
        logger.setLevel(logging.WARNING)

    def setup_method(self) -> None:
        self._cleanup_promptforge_logger()

    def teardown_method(self) -> None:
        self._cleanup_promptforge_logger()

    def test_default_info_level(self) -> None:
        setup_logging()
        assert logging.getLogger("promptforge").level == logging.INFO

    def test_sets_level_debug(self) -> None:
        setup_logging(level=logging.DEBUG)
        assert logging.getLogger("promptforge").level == logging.DEBUG

    def test_verbose_format_includes_timestamp(self) -> None:
        setup_logging(verbose=True)
        fmt = logging.getLogger("promptforge").handlers[0].formatter
        assert fmt is not None
        assert "asctime" in fmt._fmt

    def test_default_format_no_timestamp(self) -> None:
        setup_logging(verbose=False)
        fmt = logging.getLogger("promptforge").handlers[0].formatter
        assert fmt is not None
        assert "asctime" not in fmt._fmt

    def test_json_logs(self) -> None:
        setup_logging(json_logs=True)
        handler = logging.getLogger("promptforge").handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)

    def test_file_handler_uses_verbose_format(self) -> None:
        """File handler always uses verbose format with timestamps."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".log", delete=False) as f:
            log_path = f.name

        try:
            setup_logging(verbose=False, log_file=log_path)
            logger = logging.getLogger("promptforge")
            file_handlers = [
                h for h in logger.handlers if isinstance(h, logging.FileHandler)
            ]
            assert len(file_handlers) == 1
            assert file_handlers[0].baseFilename == os.path.abspath(log_path)
            fmt = file_handlers[0].formatter
            assert fmt is not None
            assert "asctime" in fmt._fmt
        finally:
            self._cleanup_promptforge_logger()
            os.unlink(log_path)

    def test_multiple_setup_calls_idempotent(self) -> None:
        """Calling setup_logging() twice doesn't duplicate handlers."""
        setup_logging()
        setup_logging(level=logging.WARNING)
        logger = logging.getLogger("promptforge")
        assert len(_stream_handlers(logger)) == 1
        assert logger.level == logging.WARNING

    def test_console_handler_writes_to_stderr(self) -> None:
        setup_logging()
        (handler,) = _stream_handlers(logging.getLogger("promptforge"))
        assert handler.stream is sys.stderr


class TestJsonFormatter:
    """Tests for the JSON log formatter."""

    def test_payload_fields(self) -> None:
        record = logging.LogRecord(
            name="promptforge.registry",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Loaded schema: %s",
            args=("scene",),
            exc_info=None,
        )
        payload = json.loads(JsonFormatter().format(record))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "promptforge.registry"
        assert payload["message"] == "Loaded schema: scene"
        assert "timestamp" in payload

    def test_context_fields_from_extra(self) -> None:
        logger = logging.getLogger("promptforge.test_json")
        record = logger.makeRecord(
            logger.name,
            logging.DEBUG,
            __file__,
            1,
            "collected",
            (),
            None,
            extra={"kind": "character", "definition": "Mira"},
        )
        payload = json.loads(JsonFormatter().format(record))
        assert payload["kind"] == "character"
        assert payload["definition"] == "Mira"
        assert "path" not in payload


class TestFormatStrings:
    """Tests for the format string constants."""

    def test_default_format_has_level_and_name(self) -> None:
        assert "%(levelname)" in DEFAULT_FORMAT
        assert "%(name)" in DEFAULT_FORMAT
        assert "%(message)" in DEFAULT_FORMAT

    def test_verbose_format_has_timestamp(self) -> None:
        assert "%(asctime)" in VERBOSE_FORMAT
