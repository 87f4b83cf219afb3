"""Tests for docsync.log: handler setup and event formatting."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from docsync.config import LoggerSettings
from docsync.log import EVENT_EMOJIS, EventFormatter, configure_logging, event


class TestConfigureLogging:
    def test_rich_handler_by_default(self) -> None:
        logger = configure_logging(LoggerSettings())
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.INFO

    def test_plain_handler(self) -> None:
        logger = configure_logging(LoggerSettings(pretty_print=False, level="warn"))
        assert not isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.WARNING

    def test_verbose_and_quiet_override(self) -> None:
        assert configure_logging(LoggerSettings(level="error"), verbose=True).level == logging.DEBUG
        assert configure_logging(LoggerSettings(level="debug"), quiet=True).level == logging.ERROR

    def test_reconfigure_replaces_handler(self) -> None:
        configure_logging(LoggerSettings())
        logger = configure_logging(LoggerSettings())
        assert len(logger.handlers) == 1


class TestEvent:
    def test_levels_and_context(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="docsync")
        log = logging.getLogger("docsync.test")

        event(log, "success", "Saved to a.mdx", size="1.00 KB")
        event(log, "failure", "Failed to download x")
        event(log, "warn", "careful")

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.INFO, logging.ERROR, logging.WARNING]
        assert "Saved to a.mdx (size=1.00 KB)" in caplog.records[0].getMessage()
        assert caplog.records[0].context == {"size": "1.00 KB"}
        assert caplog.records[0].event == "success"

    def test_message_has_no_emoji_on_record(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="docsync")
        event(logging.getLogger("docsync.test"), "success", "plain")
        assert caplog.records[-1].getMessage() == "plain"


class TestEventFormatter:
    def _record(self, kind: str | None) -> logging.LogRecord:
        record = logging.makeLogRecord({"name": "docsync.x", "msg": "Saved", "args": ()})
        if kind is not None:
            record.event = kind
        return record

    def test_emoji_prefix(self) -> None:
        formatter = EventFormatter("%(message)s")
        assert formatter.format(self._record("success")) == f"{EVENT_EMOJIS['success']} Saved"

    def test_emojis_disabled(self) -> None:
        formatter = EventFormatter("%(message)s", emojis=False)
        assert formatter.format(self._record("success")) == "Saved"

    def test_untagged_record_unchanged(self) -> None:
        assert EventFormatter("%(message)s").format(self._record(None)) == "Saved"

    def test_setting_carried_by_handler(self) -> None:
        quiet = configure_logging(LoggerSettings(enable_emojis=False)).handlers[0]
        assert isinstance(quiet.formatter, EventFormatter)
        assert quiet.formatter.emojis is False

        loud = configure_logging(LoggerSettings(pretty_print=False)).handlers[0]
        assert isinstance(loud.formatter, EventFormatter)
        assert loud.formatter.emojis is True
